from pathlib import Path
import json
import subprocess
import sys

ROOT = Path(__file__).resolve().parents[1]


def _cli(*args: str) -> subprocess.CompletedProcess:
    cmd = [sys.executable, "-m", "ddl_lens.cli", *args]
    return subprocess.run(cmd, cwd=ROOT, capture_output=True, text=True)


def test_cli_generates_outputs(tmp_path: Path):
    out_dir = tmp_path / "artifacts"
    summary = tmp_path / "summary.json"

    cmd = [
        sys.executable,
        "-m",
        "ddl_lens.cli",
        "parse",
        str(ROOT / "examples/shop_mysql.sql"),
        "--out-dir",
        str(out_dir),
        "--summary-json",
        str(summary),
    ]
    subprocess.check_call(cmd, cwd=ROOT)

    mmd = (out_dir / "schema.mmd").read_text()
    dbml = (out_dir / "schema.dbml").read_text()
    data = json.loads((out_dir / "schema.json").read_text())

    # Mermaid entities and the parent-first relationship
    assert mmd.startswith("erDiagram\n")
    assert '    int id PK "NOT NULL AUTO_INCREMENT"' in mmd
    assert '    string email UK "NOT NULL"' in mmd
    assert '  customers ||--o{ orders : "fk_orders_customer"' in mmd

    assert "Table customers {" in dbml
    assert "Ref: orders.customer_id > customers.id [delete: cascade, update: no action]" in dbml

    assert data["dialect"] == "mysql"
    assert [t["name"] for t in data["tables"]] == ["customers", "orders"]

    report = json.loads(summary.read_text())
    assert report["metadata"]["dialectUsed"] == "mysql"
    assert report["metadata"]["tablesFound"] == 2
    assert report["tables"]["orders"]["foreign_keys"] == ["customers"]


def test_cli_single_format(tmp_path: Path):
    out_dir = tmp_path / "out"
    proc = _cli("parse", "examples/blog_postgres.sql", "-f", "dbml", "--name", "blog", "--out-dir", str(out_dir))
    assert proc.returncode == 0, proc.stderr
    assert sorted(p.name for p in out_dir.iterdir()) == ["schema.dbml"]
    assert (out_dir / "schema.dbml").read_text().startswith("Project blog {")


def test_cli_summary_only_writes_nothing(tmp_path: Path):
    out_dir = tmp_path / "out"
    proc = _cli("parse", "examples/blog_postgres.sql", "--summary-only", "--out-dir", str(out_dir))
    assert proc.returncode == 0, proc.stderr
    assert "posts" in proc.stdout
    assert not out_dir.exists()


def test_cli_run_with_config(tmp_path: Path):
    out_dir = tmp_path / "from-config"
    cfg = tmp_path / "ddl-lens.yml"
    cfg.write_text(
        "\n".join(
            [
                f"input: {ROOT / 'examples/blog_postgres.sql'}",
                "dialect: postgres",
                "name: blog",
                "options:",
                "  strict: true",
                "formats: [mermaid, json]",
                f"out_dir: {out_dir}",
            ]
        )
    )
    proc = _cli("run", "--config", str(cfg))
    assert proc.returncode == 0, proc.stderr
    assert sorted(p.name for p in out_dir.iterdir()) == ["schema.json", "schema.mmd"]
    data = json.loads((out_dir / "schema.json").read_text())
    assert data["name"] == "blog"
    assert len(data["tables"]) == 3


def test_cli_detect_json():
    proc = _cli("detect", "examples/shop_mysql.sql", "--json")
    assert proc.returncode == 0, proc.stderr
    detection = json.loads(proc.stdout)
    assert detection["dialect"] == "mysql"
    assert detection["confidence"] > 0.5
    assert detection["reasons"][0] == "Found MYSQL keyword: ENGINE="
    assert len(detection["reasons"]) == 10


def test_cli_reports_parse_errors(tmp_path: Path):
    empty = tmp_path / "empty.sql"
    empty.write_text("   \n")
    proc = _cli("parse", str(empty), "--out-dir", str(tmp_path / "out"))
    assert proc.returncode == 2
    assert "SQL cannot be empty" in proc.stderr
