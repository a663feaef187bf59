import pymysql

from record_writer import usage_log


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params):
        self.conn.executed.append((sql, params))


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.committed = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def close(self):
        self.closed = True


class TestLogUsage:
    def test_inserts_row(self, monkeypatch):
        conn = FakeConnection()
        monkeypatch.setattr(usage_log.pymysql, "connect", lambda **kwargs: conn)

        assert usage_log.log_usage("session-1", "subject-detail", "create", 1234, True)

        sql, params = conn.executed[0]
        assert "INSERT INTO school_record_usage_logs" in sql
        assert params == ("session-1", "subject-detail", "create", 1234, 1, None)
        assert conn.committed
        assert conn.closed

    def test_missing_category_and_long_error(self, monkeypatch):
        conn = FakeConnection()
        monkeypatch.setattr(usage_log.pymysql, "connect", lambda **kwargs: conn)

        usage_log.log_usage("session-1", None, "review", None, False, "x" * 5000)

        _, params = conn.executed[0]
        assert params[1] == "general"
        assert params[3] == 0
        assert params[4] == 0
        assert len(params[5]) == 2000

    def test_database_error_is_swallowed(self, monkeypatch):
        def fail(**kwargs):
            raise pymysql.err.OperationalError(2003, "Can't connect to MySQL server")

        monkeypatch.setattr(usage_log.pymysql, "connect", fail)
        assert usage_log.log_usage("session-1", "activity", "create", 10, True) is False

    def test_connection_settings_from_environment(self, monkeypatch):
        captured = {}

        def connect(**kwargs):
            captured.update(kwargs)
            return FakeConnection()

        monkeypatch.setenv("DB_HOST", "db.example")
        monkeypatch.setenv("DB_PORT", "3307")
        monkeypatch.setattr(usage_log.pymysql, "connect", connect)

        usage_log.log_usage("s", "behavior", "create", 1, True)
        assert captured["host"] == "db.example"
        assert captured["port"] == 3307
        assert captured["charset"] == "utf8mb4"
