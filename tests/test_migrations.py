import os
import subprocess
import unittest
from pathlib import Path

import psycopg
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, make_url

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SCRATCH_SUFFIX = "_taskboard_migrations"
SCHEMA_TABLES = {"users", "refresh_tokens", "teams", "team_members", "invitations", "tasks"}


def _plain_dsn(url: URL) -> str:
    return url.render_as_string(hide_password=False).replace("+psycopg", "")


def _recreate_database(server_url: URL, name: str, *, create: bool) -> None:
    with psycopg.connect(_plain_dsn(server_url.set(database="postgres")), autocommit=True) as conn:
        conn.execute(
            "SELECT pg_terminate_backend(pid) FROM pg_stat_activity WHERE datname = %s AND pid <> pg_backend_pid()",
            (name,),
        )
        conn.execute(f'DROP DATABASE IF EXISTS "{name}"')
        if create:
            conn.execute(f'CREATE DATABASE "{name}"')


def _alembic(url: URL, *args: str) -> None:
    env = dict(os.environ, DATABASE_URL=url.render_as_string(hide_password=False), PYTHONPATH=str(PROJECT_ROOT))
    subprocess.run(["alembic", *args], cwd=PROJECT_ROOT, env=env, check=True, capture_output=True, text=True)


class MigrationTests(unittest.TestCase):
    """Runs the alembic chain against a scratch PostgreSQL database."""

    @classmethod
    def setUpClass(cls):
        raw = os.getenv("DATABASE_URL", "")
        if not raw.startswith("postgresql"):
            raise unittest.SkipTest("Migration test requires PostgreSQL DATABASE_URL")
        server = make_url(raw)
        cls.scratch_name = f"{server.database}{SCRATCH_SUFFIX}"
        cls.scratch_url = server.set(database=cls.scratch_name)
        _recreate_database(server, cls.scratch_name, create=True)
        cls.engine = create_engine(cls.scratch_url)

    @classmethod
    def tearDownClass(cls):
        cls.engine.dispose()
        _recreate_database(cls.scratch_url, cls.scratch_name, create=False)

    def setUp(self):
        _alembic(self.scratch_url, "upgrade", "head")

    def _tables(self) -> set[str]:
        return set(inspect(self.engine).get_table_names())

    def test_upgrade_creates_schema_and_stamps_revision(self):
        self.assertEqual(SCHEMA_TABLES - self._tables(), set())
        with self.engine.connect() as conn:
            revision = conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one()
        self.assertEqual(revision, "0001_init")

    def test_task_columns_and_indexes(self):
        inspector = inspect(self.engine)
        columns = {column["name"]: column for column in inspector.get_columns("tasks")}
        for name in ("status", "priority", "due_date", "position", "labels", "assigned_to"):
            self.assertIn(name, columns)
        self.assertTrue(columns["assigned_to"]["nullable"])
        self.assertFalse(columns["title"]["nullable"])
        indexed = {tuple(index["column_names"]) for index in inspector.get_indexes("tasks")}
        self.assertIn(("status",), indexed)

    def test_membership_and_slug_uniqueness(self):
        inspector = inspect(self.engine)
        membership = {tuple(sorted(item["column_names"])) for item in inspector.get_unique_constraints("team_members")}
        self.assertIn(("team_id", "user_id"), membership)
        slug_unique = any(index["unique"] and index["column_names"] == ["slug"] for index in inspector.get_indexes("teams"))
        slug_constraint = ("slug",) in {tuple(item["column_names"]) for item in inspector.get_unique_constraints("teams")}
        self.assertTrue(slug_unique or slug_constraint)

    def test_downgrade_to_base_drops_schema(self):
        _alembic(self.scratch_url, "downgrade", "base")
        self.assertEqual(self._tables() & SCHEMA_TABLES, set())
