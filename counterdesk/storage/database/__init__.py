from .db_connector import async_session, build_engine, dispose_engine, enable_sqlite_foreign_keys, engine, get_db

__all__ = ["async_session", "build_engine", "dispose_engine", "enable_sqlite_foreign_keys", "engine", "get_db"]
