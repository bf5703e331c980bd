from .object_store import ObjectStore, LocalObjectStore, FirebaseObjectStore, get_object_store

__all__ = ["ObjectStore", "LocalObjectStore", "FirebaseObjectStore", "get_object_store"]
