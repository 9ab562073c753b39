from pymongo.database import Database
from pymongo import MongoClient
from fastapi import Request
from duroos.services.memory_cache import TTLCache


def create_mongo_client(uri: str) -> MongoClient:
    # synchronous PyMongo client (use run_in_threadpool for blocking calls)
    return MongoClient(uri, maxPoolSize=100, serverSelectionTimeoutMS=5000)

def create_cache() -> TTLCache:
    # process-local; every worker process holds its own copy
    return TTLCache()

def get_db(request: Request) -> Database:
    return request.app.state.db

def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache
