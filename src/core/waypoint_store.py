"""Waypoint, edge and junction storage on SQLite."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

import config
from src.models.waypoint import Edge, EdgeKey, JunctionRecord, Waypoint
from src.utils.coordinate_frame import CoordinateFrame

WAYPOINT_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS waypoints (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    x REAL NOT NULL,
    y REAL NOT NULL,
    z REAL NOT NULL,
    roll REAL DEFAULT 0,
    pitch REAL DEFAULT 0,
    yaw REAL DEFAULT 0,
    zone TEXT DEFAULT 'N/A',
    width_left REAL DEFAULT 0.5,
    width_right REAL DEFAULT 0.5,
    two_way INTEGER DEFAULT 0
);"""

EDGE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS edge_graph (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    id1 INTEGER NOT NULL,
    id2 INTEGER NOT NULL,
    weight REAL DEFAULT 0,
    CHECK (id1 != id2)
);"""

JUNCTION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS junction_points (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    junction_waypoint_id INTEGER NOT NULL,
    from_waypoint_id INTEGER NOT NULL,
    to_waypoint_id INTEGER NOT NULL,
    entry_x REAL, entry_y REAL, entry_z REAL,
    exit_x REAL, exit_y REAL, exit_z REAL
);"""

WIDTH_COLUMNS = {"left": "width_left", "right": "width_right"}


class WaypointStoreError(Exception):
    """A store transaction failed and was rolled back."""


class WaypointStore:
    """Reads and writes the waypoint graph tables.

    Positions cross this boundary in the local frame; rows are kept in the
    stored convention handled by ``CoordinateFrame``.
    """

    def __init__(self, db_path: Union[Path, str] = config.DATABASE_FILE,
                 frame: Optional[CoordinateFrame] = None):
        self.db_path = db_path
        self.frame = frame or CoordinateFrame()
        self.conn: Optional[sqlite3.Connection] = None

    def open(self) -> bool:
        """Open the database file and make sure the tables exist."""
        try:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path), isolation_level=None)
            self.conn.execute(WAYPOINT_TABLE_SQL)
            self.conn.execute(EDGE_TABLE_SQL)
            self.conn.execute(JUNCTION_TABLE_SQL)
            return True
        except sqlite3.Error as e:
            print(f"❌ Error opening waypoint database: {e}")
            self.conn = None
            return False

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Run a block of writes atomically.

        Commits on success. Any error rolls the whole block back and is
        re-raised as ``WaypointStoreError``.
        """
        cur = self.conn.cursor()
        cur.execute("BEGIN TRANSACTION")
        try:
            yield cur
            cur.execute("COMMIT")
        except (sqlite3.Error, ValueError) as e:
            cur.execute("ROLLBACK")
            raise WaypointStoreError(f"Transaction rolled back: {e}") from e
        except BaseException:
            cur.execute("ROLLBACK")
            raise
        finally:
            cur.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_waypoints(self) -> Dict[int, Waypoint]:
        """Load every waypoint keyed by id."""
        rows = self.conn.execute(
            "SELECT id, x, y, z, roll, pitch, yaw, zone, width_left, "
            "width_right, two_way FROM waypoints ORDER BY id;"
        ).fetchall()
        return {row[0]: self._row_to_waypoint(row) for row in rows}

    def get_waypoint(self, waypoint_id: int) -> Optional[Waypoint]:
        row = self.conn.execute(
            "SELECT id, x, y, z, roll, pitch, yaw, zone, width_left, "
            "width_right, two_way FROM waypoints WHERE id = ?;",
            (waypoint_id,)
        ).fetchone()
        return self._row_to_waypoint(row) if row else None

    def get_edges(self) -> List[Edge]:
        rows = self.conn.execute(
            "SELECT id, id1, id2, weight FROM edge_graph ORDER BY id;"
        ).fetchall()
        return [Edge(id=r[0], id1=r[1], id2=r[2], weight=r[3]) for r in rows]

    def get_junction_records(self) -> List[JunctionRecord]:
        rows = self.conn.execute(
            "SELECT junction_waypoint_id, from_waypoint_id, to_waypoint_id, "
            "entry_x, entry_y, entry_z, exit_x, exit_y, exit_z "
            "FROM junction_points ORDER BY id;"
        ).fetchall()
        return [
            JunctionRecord(
                junction_id=r[0],
                from_id=r[1],
                to_id=r[2],
                entry=self.frame.to_local(*r[3:6]).tolist(),
                exit=self.frame.to_local(*r[6:9]).tolist()
            )
            for r in rows
        ]

    def count_waypoints(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM waypoints;").fetchone()[0]

    def has_edge(self, id1: int, id2: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM edge_graph WHERE (id1 = ? AND id2 = ?) "
            "OR (id1 = ? AND id2 = ?) LIMIT 1;",
            (id1, id2, id2, id1)
        ).fetchone()
        return row is not None

    def _row_to_waypoint(self, row: Sequence) -> Waypoint:
        return Waypoint(
            id=row[0],
            position=self.frame.to_local(row[1], row[2], row[3]).tolist(),
            roll=row[4] or 0.0,
            pitch=row[5] or 0.0,
            yaw=row[6] or 0.0,
            zone=row[7] or config.DEFAULT_ZONE,
            width_left=(config.DEFAULT_HALF_WIDTH if row[8] is None
                        else row[8]),
            width_right=(config.DEFAULT_HALF_WIDTH if row[9] is None
                         else row[9]),
            two_way=bool(row[10])
        )

    # ------------------------------------------------------------------
    # Writes (run inside ``transaction()``)
    # ------------------------------------------------------------------

    def insert_waypoint(self, cur: sqlite3.Cursor, position: Sequence[float],
                        zone: str = config.DEFAULT_ZONE,
                        width_left: float = config.DEFAULT_HALF_WIDTH,
                        width_right: float = config.DEFAULT_HALF_WIDTH,
                        two_way: bool = False) -> int:
        """Insert a waypoint given in the local frame, return its id."""
        x, y, z = self.frame.to_store(position)
        cur.execute(
            "INSERT INTO waypoints (x, y, z, roll, pitch, yaw, zone, "
            "width_left, width_right, two_way) "
            "VALUES (?, ?, ?, 0, 0, 0, ?, ?, ?, ?)",
            (x, y, z, zone, width_left, width_right, int(two_way))
        )
        return cur.lastrowid

    def insert_edge(self, cur: sqlite3.Cursor, id1: int, id2: int,
                    weight: float) -> int:
        cur.execute(
            "INSERT INTO edge_graph (id1, id2, weight) VALUES (?, ?, ?)",
            (id1, id2, weight)
        )
        return cur.lastrowid

    def update_position(self, cur: sqlite3.Cursor, waypoint_id: int,
                        position: Sequence[float]) -> None:
        x, y, z = self.frame.to_store(position)
        cur.execute(
            "UPDATE waypoints SET x = ?, y = ?, z = ? WHERE id = ?",
            (x, y, z, waypoint_id)
        )

    def delete_waypoints(self, cur: sqlite3.Cursor,
                         waypoint_ids: Iterable[int]) -> None:
        """Delete waypoints together with their incident edges."""
        ids = list(waypoint_ids)
        if not ids:
            return
        placeholders = ",".join("?" * len(ids))
        cur.execute(
            f"DELETE FROM edge_graph WHERE id1 IN ({placeholders}) "
            f"OR id2 IN ({placeholders})",
            ids + ids
        )
        cur.execute(f"DELETE FROM waypoints WHERE id IN ({placeholders})", ids)

    def delete_edges(self, cur: sqlite3.Cursor, keys: Iterable[EdgeKey]) -> None:
        for id1, id2 in keys:
            cur.execute(
                "DELETE FROM edge_graph WHERE (id1 = ? AND id2 = ?) "
                "OR (id1 = ? AND id2 = ?)",
                (id1, id2, id2, id1)
            )

    def replace_junction_records(self, cur: sqlite3.Cursor,
                                 records: Iterable[JunctionRecord]) -> None:
        """Drop all junction rows and insert the given records."""
        cur.execute("DELETE FROM junction_points")
        for record in records:
            entry = self.frame.to_store(record.entry)
            exit_ = self.frame.to_store(record.exit)
            cur.execute(
                "INSERT INTO junction_points (junction_waypoint_id, "
                "from_waypoint_id, to_waypoint_id, entry_x, entry_y, entry_z, "
                "exit_x, exit_y, exit_z) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (record.junction_id, record.from_id, record.to_id,
                 *entry, *exit_)
            )

    def set_widths(self, cur: sqlite3.Cursor, width_left: float,
                   width_right: float) -> None:
        cur.execute(
            "UPDATE waypoints SET width_left = ?, width_right = ?",
            (width_left, width_right)
        )

    def set_width_range(self, cur: sqlite3.Cursor, side: str, width: float,
                        start_id: int, end_id: int) -> None:
        """Set one side's width on ids in [start_id, end_id)."""
        if side not in WIDTH_COLUMNS:
            raise ValueError(f"Unknown lane side: {side}")
        column = WIDTH_COLUMNS[side]
        cur.execute(
            f"UPDATE waypoints SET {column} = ? WHERE id >= ? AND id < ?",
            (width, start_id, end_id)
        )

    def set_two_way(self, cur: sqlite3.Cursor,
                    waypoint_ids: Iterable[int]) -> None:
        ids = list(waypoint_ids)
        if not ids:
            return
        placeholders = ",".join("?" * len(ids))
        cur.execute(
            f"UPDATE waypoints SET two_way = 1 WHERE id IN ({placeholders})",
            ids
        )
