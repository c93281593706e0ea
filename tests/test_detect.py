import pytest

from ddl_lens.core import detect
from ddl_lens.core.detect import detect_dialect, force_dialect
from ddl_lens.core.ir import Dialect

SAMPLES = {
    Dialect.MYSQL: """
        CREATE TABLE users (
          id INT AUTO_INCREMENT PRIMARY KEY,
          name VARCHAR(255) NOT NULL
        ) ENGINE=InnoDB CHARSET=utf8mb4;
    """,
    Dialect.POSTGRES: """
        CREATE TABLE users (
          id SERIAL PRIMARY KEY,
          data JSONB NOT NULL
        );
    """,
    Dialect.MSSQL: """
        CREATE TABLE users (
          id INT IDENTITY(1,1) PRIMARY KEY,
          name NVARCHAR(255) NOT NULL,
          created_at DATETIME2 DEFAULT GETDATE()
        );
    """,
    Dialect.SQLITE: """
        CREATE TABLE users (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL
        );
    """,
    Dialect.ORACLE: """
        CREATE TABLE employees (
          id NUMBER(10) PRIMARY KEY,
          name VARCHAR2(100) NOT NULL,
          hired DATE DEFAULT SYSDATE
        );
    """,
}


@pytest.mark.parametrize("dialect", list(Dialect))
def test_detects_each_dialect(dialect):
    result = detect_dialect(SAMPLES[dialect])
    assert result.dialect == dialect
    assert result.confidence > 0.5


def test_reasons_name_the_matched_keywords():
    result = detect_dialect(SAMPLES[Dialect.MYSQL])
    assert "Found MYSQL keyword: AUTO_INCREMENT" in result.reasons
    assert "Found MYSQL keyword: ENGINE=" in result.reasons
    assert "Strong MySQL indicators found" in result.reasons


def test_generic_sql_is_unknown():
    sql = """
        CREATE TABLE users (
          id INTEGER PRIMARY KEY,
          name VARCHAR(255) NOT NULL,
          email VARCHAR(255) UNIQUE
        );
    """
    result = detect_dialect(sql)
    assert result.dialect == "unknown"
    assert not result.is_known
    assert result.confidence < 0.4


def test_ties_resolve_in_enum_order():
    # IF NOT EXISTS scores for both mysql and sqlite
    result = detect_dialect("CREATE TABLE IF NOT EXISTS t (a INT);")
    assert result.dialect == Dialect.MYSQL
    assert result.confidence == 0.71


def test_reasons_are_capped():
    sql = (
        "CREATE TABLE t (a TINYINT UNSIGNED ZEROFILL, b MEDIUMINT, c LONGTEXT, d MEDIUMTEXT, "
        "e TINYTEXT, f ENUM('x'), g SET('y'), h YEAR(4), i BINARY(2), j VARBINARY(3)) ENGINE=InnoDB;"
    )
    result = detect_dialect(sql)
    assert result.dialect == Dialect.MYSQL
    assert len(result.reasons) == 10


def test_confidence_is_rounded_and_bounded():
    result = detect_dialect(SAMPLES[Dialect.POSTGRES] + " ENGINE=InnoDB")
    assert 0.0 <= result.confidence <= 1.0
    assert result.confidence == round(result.confidence, 2)


@pytest.mark.parametrize("dialect", list(Dialect))
def test_force_dialect(dialect):
    result = force_dialect(dialect)
    assert result.dialect == dialect
    assert result.confidence == 1.0
    assert result.reasons == [f"Dialect manually specified as {dialect.value.upper()}"]


def test_force_dialect_accepts_strings():
    assert force_dialect("postgres").dialect == Dialect.POSTGRES


def test_key_suffix_of_generic_constraints_does_not_score():
    sql = (
        "CREATE TABLE users (id INT NOT NULL, name VARCHAR(50) NOT NULL, "
        "PRIMARY KEY (id), FOREIGN KEY (id) REFERENCES accounts(id));"
    )
    result = detect_dialect(sql)
    assert result.dialect == "unknown"
    assert result.confidence == 0.0
    assert result.reasons == ["Only generic SQL keywords found"]


def test_bare_key_clause_scores_for_mysql():
    result = detect_dialect("CREATE TABLE t (a INT, KEY idx_a (a));")
    assert "Found MYSQL keyword: KEY " in result.reasons


def test_unknown_cutoff_uses_unrounded_confidence(monkeypatch):
    # raw confidence is 1 / 1.4 = 0.714..., reported as 0.71
    monkeypatch.setattr(detect, "MIN_CONFIDENCE", 0.712)
    result = detect_dialect("CREATE TABLE IF NOT EXISTS t (a INT);")
    assert result.dialect == Dialect.MYSQL
    assert result.confidence == 0.71
