import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.ai_usage import AIUsageOperations
from infrastructure.database.ops.care_log import CareLogOperations
from infrastructure.database.ops.care_plans import CarePlanOperations
from infrastructure.database.ops.chat import ChatOperations
from infrastructure.database.ops.households import HouseholdOperations
from infrastructure.database.ops.plants import PlantOperations
from infrastructure.database.ops.tasks import TaskOperations

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


class SQLiteDatabaseHandler(
    PlantOperations,
    CarePlanOperations,
    TaskOperations,
    CareLogOperations,
    HouseholdOperations,
    ChatOperations,
    AIUsageOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()

        # Ensure the directory for the database file exists
        if database_path != IN_MEMORY:
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        # An in-memory database lives only as long as its connection
        if app is not None and self._database_path != IN_MEMORY:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            connection = self._open_connection()
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure SQLite connection.

        - WAL mode: concurrent readers while a request writes
        - NORMAL synchronous: still safe with WAL
        - busy_timeout: wait for a competing writer instead of failing
        - foreign_keys: enforce plant/plan/task references
        """
        if self._database_path != IN_MEMORY:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA busy_timeout=5000")
        connection.execute("PRAGMA foreign_keys=ON")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")
            self._local.tx_depth = 0

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            self._commit(conn)

    # --- Transactions ------------------------------------------------------------
    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "tx_depth", 0) > 0

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements atomically.

        The outermost call issues ``BEGIN IMMEDIATE`` so the write lock is
        taken up front; nested calls use savepoints. Ops methods skip their
        own commit while a transaction is open.
        """
        conn = self.get_db()
        depth = getattr(self._local, "tx_depth", 0)
        savepoint = f"sp_{depth}"
        if depth == 0:
            if conn.in_transaction:
                conn.commit()
            conn.execute("BEGIN IMMEDIATE")
        else:
            conn.execute(f"SAVEPOINT {savepoint}")
        self._local.tx_depth = depth + 1
        try:
            yield conn
        except BaseException:
            self._local.tx_depth = depth
            if depth == 0:
                conn.rollback()
            else:
                conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            raise
        else:
            self._local.tx_depth = depth
            if depth == 0:
                conn.commit()
            else:
                conn.execute(f"RELEASE SAVEPOINT {savepoint}")

    def _commit(self, conn: sqlite3.Connection) -> None:
        if not self.in_transaction:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        with self.connection() as db:
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT UNIQUE NOT NULL,
                    display_name TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Plants (
                    plant_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    species TEXT,
                    species_confidence REAL,
                    species_confirmed BOOLEAN DEFAULT 0,
                    pot_size TEXT,
                    soil_type TEXT,
                    light_condition TEXT,
                    location TEXT,
                    notes TEXT,
                    health_status TEXT,
                    can_rotate BOOLEAN DEFAULT 1,
                    is_propagation BOOLEAN DEFAULT 0,
                    propagation_date TEXT,
                    has_grow_light BOOLEAN DEFAULT 0,
                    grow_light_hours REAL,
                    last_health_check TEXT,
                    archived_at TEXT,
                    archive_reason TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
            db.execute("CREATE INDEX IF NOT EXISTS idx_plants_owner ON Plants(owner_id)")

            # Care plans are never deleted; older plans stay for history
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS CarePlans (
                    plan_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plant_id INTEGER NOT NULL,
                    season TEXT NOT NULL,
                    ai_reasoning TEXT,
                    next_photo_check TEXT,
                    photo_check_reason TEXT,
                    valid_until TEXT,
                    is_active BOOLEAN NOT NULL DEFAULT 1,
                    source TEXT NOT NULL DEFAULT 'ai',
                    generated_at TEXT NOT NULL,
                    FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE
                )
                """
            )
            db.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS uq_care_plans_active "
                "ON CarePlans(plant_id) WHERE is_active = 1"
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Tasks (
                    task_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    care_plan_id INTEGER,
                    plant_id INTEGER NOT NULL,
                    task_type TEXT NOT NULL,
                    due_date TEXT NOT NULL,
                    recurrence TEXT,
                    instructions TEXT,
                    priority TEXT NOT NULL DEFAULT 'normal',
                    notes TEXT,
                    completed_at TEXT,
                    completed_by INTEGER,
                    skipped_at TEXT,
                    skip_reason TEXT,
                    created_at TEXT NOT NULL,
                    CHECK (completed_at IS NULL OR skipped_at IS NULL),
                    FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE,
                    FOREIGN KEY (care_plan_id) REFERENCES CarePlans(plan_id) ON DELETE SET NULL
                )
                """
            )
            db.execute("CREATE INDEX IF NOT EXISTS idx_tasks_plant ON Tasks(plant_id)")
            db.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON Tasks(due_date)")
            # Idempotency key for next-occurrence generation
            db.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS uq_tasks_pending_occurrence "
                "ON Tasks(plant_id, task_type, due_date) "
                "WHERE completed_at IS NULL AND skipped_at IS NULL"
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS CareLog (
                    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plant_id INTEGER NOT NULL,
                    task_id INTEGER,
                    action TEXT NOT NULL,
                    notes TEXT,
                    outcome TEXT,
                    performed_by INTEGER,
                    performed_at TEXT NOT NULL,
                    FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_care_log_plant_time ON CareLog(plant_id, performed_at DESC)"
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS TaskTypeSettings (
                    user_id INTEGER NOT NULL,
                    task_type TEXT NOT NULL,
                    enabled BOOLEAN NOT NULL DEFAULT 1,
                    PRIMARY KEY (user_id, task_type)
                )
                """
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Households (
                    household_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    created_by INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS HouseholdMembers (
                    household_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    role TEXT NOT NULL DEFAULT 'member',
                    PRIMARY KEY (household_id, user_id),
                    FOREIGN KEY (household_id) REFERENCES Households(household_id) ON DELETE CASCADE
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS HouseholdPlants (
                    household_id INTEGER NOT NULL,
                    plant_id INTEGER NOT NULL,
                    PRIMARY KEY (household_id, plant_id),
                    FOREIGN KEY (household_id) REFERENCES Households(household_id) ON DELETE CASCADE,
                    FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_household_members_user ON HouseholdMembers(user_id)"
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS ChatMessages (
                    message_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plant_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    provider TEXT,
                    suggested_actions TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_chat_messages_plant_user ON ChatMessages(plant_id, user_id)"
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS AIUsageLog (
                    usage_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    action TEXT NOT NULL,
                    provider TEXT,
                    model TEXT,
                    success BOOLEAN NOT NULL,
                    error_message TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
        logger.info("Database schema ready at %s", self._database_path)
