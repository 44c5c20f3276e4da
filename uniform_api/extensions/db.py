from pymongo import ASCENDING, DESCENDING, MongoClient
from redis import Redis
from rq import Queue


class MongoDB:
    def __init__(self):
        self.client = None
        self.db = None

    def init_app(self, app, client=None):
        self.client = client or MongoClient(app.config["MONGO_URI"])
        self.db = self.client[app.config["DB_NAME"]]
        app.mongo = self.db

        # -------------------------------------------------
        # ✅ CREATE INDEXES (runs once on startup)
        # -------------------------------------------------
        self.create_indexes()

    def init_client(self, client, db_name):
        """Bind to an already constructed client without a Flask app (workers, tests)."""
        self.client = client
        self.db = client[db_name]
        self.create_indexes()

    def create_indexes(self):
        # eligibility rules
        self.db.designation_eligibilities.create_index(
            [("company_id", ASCENDING), ("designation_key", ASCENDING), ("gender", ASCENDING), ("status", ASCENDING)]
        )
        self.db.designation_eligibilities.create_index([("company_id", ASCENDING), ("status", ASCENDING)])

        # employees
        self.db.employees.create_index([("employee_id", ASCENDING)], unique=True)
        self.db.employees.create_index([("company_id", ASCENDING), ("status", ASCENDING)])

        # products
        self.db.uniforms.create_index([("company_ids", ASCENDING), ("sku", ASCENDING)])

        # orders
        self.db.orders.create_index([("employee_id", ASCENDING), ("company_id", ASCENDING)])
        self.db.orders.create_index([("company_id", ASCENDING), ("status", ASCENDING)])
        self.db.orders.create_index([("order_date", DESCENDING)])

        # snapshots written by the reset job
        self.db.eligibility_snapshots.create_index(
            [("company_id", ASCENDING), ("employee_id", ASCENDING)], unique=True
        )

    def get_collection(self, name):
        if self.db is None:
            raise RuntimeError("MongoDB not initialized")
        return self.db[name]


class RedisConnection:
    def __init__(self):
        self.connection = None
        self.queue = None

    def init_app(self, app):
        host = app.config.get("REDIS_HOST", "localhost")
        port = int(app.config.get("REDIS_PORT", 6379))
        self.connection = Redis(host=host, port=port)
        self.queue = Queue(app.config.get("ELIGIBILITY_RESET_QUEUE", "eligibility"), connection=self.connection)
        app.queue = self.queue


# Export the instances
db = MongoDB()
redis_connection = RedisConnection()
