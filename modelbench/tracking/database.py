"""Database tracking for benchmark runs.

Every finished (model, sample size, trial) run is written to SQLite as it
completes, so an interrupted benchmark can be resumed and the report can be
re-rendered without retraining.
"""

import sqlite3
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Set
from datetime import datetime

import pandas as pd


logger = logging.getLogger(__name__)

TRIAL_COLUMNS = [
    'timestamp', 'run_id', 'model_name', 'sample_size', 'trial', 'seed',
    'size_fraction', 'runtime_fraction', 'error_rate', 'accuracy', 'points',
    'fit_seconds', 'predict_seconds', 'runtime_seconds', 'memory_mb',
    'status', 'error_message'
]


class BenchmarkDatabase:
    """SQLite database manager for benchmark runs.

    Uses WAL mode so results can be queried while a benchmark is running.
    """

    def __init__(self, db_path: Path):
        """Initialize database manager.

        Parameters
        ----------
        db_path : Path
            Path to SQLite database file.
        """
        self.db_path = Path(db_path)
        self.timeout = 30.0  # Seconds

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def reset(self) -> None:
        """Delete the database file if it exists to start fresh."""
        if self.db_path.exists():
            self.db_path.unlink()
            # WAL side files would otherwise be replayed into the new database
            for suffix in ('-wal', '-shm'):
                side_file = self.db_path.with_name(self.db_path.name + suffix)
                if side_file.exists():
                    side_file.unlink()
            logger.info(f"Deleted existing database: {self.db_path}")
        else:
            logger.info(f"No existing database found at: {self.db_path}")

    def initialize(self) -> None:
        """Initialize database with required tables and indexes.

        Creates two tables:
        - trial_log: One row per finished run
        - run_status: Active worker tracking

        Safe to call multiple times - only creates tables if they don't exist.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            conn.execute('PRAGMA journal_mode=WAL')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS trial_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    run_id TEXT NOT NULL,
                    model_name TEXT NOT NULL,
                    sample_size INTEGER NOT NULL,
                    trial INTEGER NOT NULL,
                    seed INTEGER NOT NULL,
                    size_fraction REAL,
                    runtime_fraction REAL,
                    error_rate REAL,
                    accuracy REAL,
                    points REAL,
                    fit_seconds REAL,
                    predict_seconds REAL,
                    runtime_seconds REAL,
                    memory_mb REAL,
                    status TEXT NOT NULL,
                    error_message TEXT
                )
            ''')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS run_status (
                    worker_id INTEGER PRIMARY KEY,
                    run_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    model_name TEXT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    runtime_sec REAL,
                    last_update TEXT NOT NULL
                )
            ''')

            conn.execute('CREATE INDEX IF NOT EXISTS idx_run_id ON trial_log(run_id)')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_model_name ON trial_log(model_name)')

            conn.commit()
        finally:
            conn.close()

        logger.debug(f"Database initialized at: {self.db_path}")

    def insert_trial(self, trial_data: Dict) -> None:
        """Insert a finished run.

        Parameters
        ----------
        trial_data : dict
            Result row with required keys run_id, model_name, sample_size,
            trial, seed and status. Metric keys are optional (NULL for
            failed runs).
        """
        row = dict(trial_data)
        row.setdefault('timestamp', datetime.now().isoformat())

        values = []
        for column in TRIAL_COLUMNS:
            value = row.get(column)
            # NaN metrics from failed runs are stored as NULL
            if isinstance(value, float) and value != value:
                value = None
            values.append(value)

        placeholders = ', '.join('?' for _ in TRIAL_COLUMNS)
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO trial_log ({', '.join(TRIAL_COLUMNS)}) VALUES ({placeholders})",
                values
            )
            conn.commit()
        finally:
            conn.close()

    def query_trials(
        self,
        limit: Optional[int] = None,
        model_name: Optional[str] = None
    ) -> pd.DataFrame:
        """Query finished runs.

        Parameters
        ----------
        limit : int or None, default=None
            Maximum number of rows to return (most recent first).
        model_name : str or None, default=None
            Only return rows for this model.

        Returns
        -------
        df : pd.DataFrame
            Run data, empty if no data exists.
        """
        conn = self._connect()
        try:
            query = 'SELECT * FROM trial_log'
            params = ()
            if model_name is not None:
                query += ' WHERE model_name = ?'
                params = (model_name,)
            query += ' ORDER BY id DESC'
            if limit is not None:
                query += f' LIMIT {int(limit)}'

            return pd.read_sql_query(query, conn, params=params)
        finally:
            conn.close()

    def get_completed_run_ids(self) -> Set[str]:
        """Get the ids of all runs that finished successfully.

        Returns
        -------
        run_ids : set of str
            Run ids with status 'completed'.
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT DISTINCT run_id FROM trial_log WHERE status = 'completed'"
            )
            return {row[0] for row in cursor.fetchall()}
        finally:
            conn.close()

    def prune_trials(self, keep_run_ids: Iterable[str]) -> int:
        """Delete runs that do not belong to the given design.

        Parameters
        ----------
        keep_run_ids : iterable of str
            Run ids of the current design. Every other row is deleted.

        Returns
        -------
        n_deleted : int
            Number of rows removed.
        """
        keep = set(keep_run_ids)
        conn = self._connect()
        try:
            stored = {row[0] for row in conn.execute('SELECT DISTINCT run_id FROM trial_log')}
            stale = [(run_id,) for run_id in stored - keep]
            if not stale:
                return 0
            before = conn.total_changes
            conn.executemany('DELETE FROM trial_log WHERE run_id = ?', stale)
            conn.commit()
            return conn.total_changes - before
        finally:
            conn.close()

    def clear_run_status(self) -> None:
        """Clear all worker status entries.

        Call this at the start of a benchmark to reset worker tracking.
        """
        conn = self._connect()
        try:
            conn.execute('DELETE FROM run_status')
            conn.commit()
        finally:
            conn.close()

    def update_worker_status(
        self,
        worker_id: int,
        run_id: str,
        status: str,
        model_name: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        runtime_sec: Optional[float] = None
    ) -> None:
        """Record the state of a worker slot, creating the slot on first use.

        Parameters
        ----------
        worker_id : int
            Worker slot identifier.
        run_id : str
            Run being processed.
        status : str
            One of 'running', 'completed', 'timeout', 'error'.
        model_name : str, optional
            Model being trained.
        start_time : str, optional
            ISO timestamp when the run started.
        end_time : str, optional
            ISO timestamp when the run finished.
        runtime_sec : float, optional
            Runtime in seconds.
        """
        current_time = datetime.now().isoformat()

        # Slots are reused across runs: later runs overwrite the row, keeping
        # the model name and start time unless new ones are given
        conn = self._connect()
        try:
            conn.execute('''
                INSERT INTO run_status (
                    worker_id, run_id, status, model_name,
                    start_time, end_time, runtime_sec, last_update
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(worker_id) DO UPDATE SET
                    run_id = excluded.run_id,
                    status = excluded.status,
                    model_name = COALESCE(?, run_status.model_name),
                    start_time = COALESCE(?, run_status.start_time),
                    end_time = excluded.end_time,
                    runtime_sec = excluded.runtime_sec,
                    last_update = excluded.last_update
            ''', (
                worker_id, run_id, status, model_name,
                start_time or current_time, end_time, runtime_sec, current_time,
                model_name, start_time
            ))
            conn.commit()
        finally:
            conn.close()

    def get_run_status(self) -> pd.DataFrame:
        """Get current status for all worker slots.

        Returns
        -------
        df : pd.DataFrame
            Worker status data, empty if no data exists.
        """
        conn = self._connect()
        try:
            return pd.read_sql_query(
                'SELECT * FROM run_status ORDER BY worker_id',
                conn
            )
        finally:
            conn.close()

    def exists(self) -> bool:
        """Check if the database file exists."""
        return self.db_path.exists()

    def get_size_mb(self) -> float:
        """Get the size of the database file in MB.

        Returns
        -------
        size_mb : float
            Size in megabytes, or 0 if database doesn't exist.
        """
        if self.db_path.exists():
            return self.db_path.stat().st_size / (1024 * 1024)
        return 0.0
