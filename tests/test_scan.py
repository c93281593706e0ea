from ddl_lens.core.scan import (
    ParenScanner,
    ScanState,
    clean_sql,
    locate_statements,
    read_balanced,
    read_identifier,
    split_clauses,
    split_qualified_name,
)


def test_clean_sql_strips_comments_and_whitespace():
    sql = "CREATE TABLE t ( -- note\n  a INT /* inline */\n);"
    assert clean_sql(sql) == "CREATE TABLE t ( a INT );"


def test_clean_sql_keeps_comment_markers_inside_strings():
    sql = "a VARCHAR(5) DEFAULT '--x', b TEXT DEFAULT '/* y */'"
    assert clean_sql(sql) == sql


def test_scanner_states():
    scanner = ParenScanner()
    states = [scanner.feed(ch) for ch in "a('x)')"]
    assert states == [
        ScanState.NORMAL,
        ScanState.NORMAL,
        ScanState.IN_PAREN,
        ScanState.IN_QUOTE,
        ScanState.IN_QUOTE,
        ScanState.IN_QUOTE,
        ScanState.IN_PAREN,
    ]
    assert scanner.state is ScanState.NORMAL


def test_split_keeps_nested_commas_together():
    body = "id INT, price DECIMAL(10,2), tags ENUM('a,b','c'), FOREIGN KEY (a, b) REFERENCES t(a, b)"
    assert split_clauses(body) == [
        "id INT",
        "price DECIMAL(10,2)",
        "tags ENUM('a,b','c')",
        "FOREIGN KEY (a, b) REFERENCES t(a, b)",
    ]


def test_split_handles_three_levels_of_nesting():
    body = "a INT DEFAULT (COALESCE(f(1, 2), 3)), b INT"
    assert split_clauses(body) == ["a INT DEFAULT (COALESCE(f(1, 2), 3))", "b INT"]


def test_split_ignores_parens_and_commas_in_quotes():
    body = "note VARCHAR(10) DEFAULT ')', label TEXT DEFAULT 'x, y', `odd,name` INT"
    assert split_clauses(body) == [
        "note VARCHAR(10) DEFAULT ')'",
        "label TEXT DEFAULT 'x, y'",
        "`odd,name` INT",
    ]


def test_split_drops_empty_clauses():
    assert split_clauses(" a INT , , b INT, ") == ["a INT", "b INT"]


def test_read_balanced():
    text = "VARCHAR(10) x (a, (b), 'c)') tail"
    assert read_balanced(text, 7) == ("10", 10)
    inner, end = read_balanced(text, 14)
    assert inner == "a, (b), 'c)'"
    assert text[end + 1 :] == " tail"
    assert read_balanced("(open", 0) is None


def test_read_identifier_variants():
    assert read_identifier("`user id` INT") == ("user id", " INT")
    assert read_identifier('"Name" TEXT') == ("Name", " TEXT")
    assert read_identifier("[order] INT") == ("order", " INT")
    assert read_identifier("  plain INT") == ("plain", " INT")
    assert read_identifier("(x)") is None


def test_split_qualified_name():
    assert split_qualified_name("users") == (None, "users")
    assert split_qualified_name('"public"."users"') == ("public", "users")
    assert split_qualified_name("[dbo].[orders]") == ("dbo", "orders")


def test_locate_statements_in_order():
    sql = clean_sql(
        """
        CREATE TABLE users (id INT, name VARCHAR(10));
        CREATE TEMPORARY TABLE IF NOT EXISTS `audit log` (id INT) ENGINE=InnoDB COMMENT='x;y';
        CREATE TABLE [dbo].[orders] (id INT, total DECIMAL(10,2));
        """
    )
    statements = locate_statements(sql)
    assert [s.name for s in statements] == ["users", "audit log", "orders"]
    assert statements[0].body == "id INT, name VARCHAR(10)"
    assert statements[1].options == "ENGINE=InnoDB COMMENT='x;y'"
    assert statements[2].schema_name == "dbo"
    assert statements[2].body == "id INT, total DECIMAL(10,2)"


def test_locate_ignores_parens_in_quoted_defaults():
    sql = "CREATE TABLE t (a VARCHAR(5) DEFAULT ')', b INT); CREATE TABLE u (c INT);"
    statements = locate_statements(sql)
    assert [s.name for s in statements] == ["t", "u"]
    assert statements[0].body == "a VARCHAR(5) DEFAULT ')', b INT"


def test_unterminated_table_is_reported():
    statements = locate_statements("CREATE TABLE invalid (")
    assert len(statements) == 1
    assert statements[0].name == "invalid"
    assert not statements[0].terminated


def test_locate_statements_without_semicolons():
    sql = clean_sql(
        "CREATE TABLE [dbo].[a] ([id] INT NOT NULL) ON [PRIMARY]\nGO\n"
        "CREATE TABLE [dbo].[b] ([id] INT NOT NULL)\nGO\n"
    )
    statements = locate_statements(sql)
    assert [s.name for s in statements] == ["a", "b"]
    assert statements[0].options == "ON [PRIMARY] GO"
    assert statements[1].options == "GO"
