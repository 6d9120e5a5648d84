from doipsim.storage.local_store import LocalStorage, save_execution

__all__ = ["LocalStorage", "save_execution"]
