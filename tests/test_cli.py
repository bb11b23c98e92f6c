"""Tests for the fridgefriend command line."""

import json
from datetime import date

import pytest

from fridgefriend.cli import main
from fridgefriend.db import InventoryDB
from fridgefriend.pipeline import InventoryItemDraft

from fakes import ScriptedDetector, StaticOCR, det


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    db_path = (tmp_path / "inventory.db").as_posix()
    path.write_text(
        "[detector]\n"
        "max_retries = 2\n"
        "backoff_ms = 0\n"
        "\n"
        "[database]\n"
        f'path = "{db_path}"\n'
    )
    return path, db_path


@pytest.fixture
def backends(monkeypatch, image):
    """Route the configured detector, OCR engine and image loading to stand-ins."""
    stubs = {
        "detector": ScriptedDetector([[det("banana", 0.9)]]),
        "ocr": StaticOCR("Best before 12-05-2024"),
    }
    monkeypatch.setattr(
        "fridgefriend.vision.create_detector", lambda config: stubs["detector"]
    )
    monkeypatch.setattr(
        "fridgefriend.ocr.create_ocr_engine", lambda config: stubs["ocr"]
    )
    monkeypatch.setattr("fridgefriend.pipeline.load_image", lambda path: image)
    return stubs


def _stock(db_path, name, expiry):
    db = InventoryDB(db_path)
    try:
        return db.add_draft(
            InventoryItemDraft(
                product_name=name,
                quantity=2,
                purchase_date=date.today(),
                expiry_date=expiry,
            )
        )
    finally:
        db.close()


def _rows(db_path):
    db = InventoryDB(db_path)
    try:
        return db.list_items()
    finally:
        db.close()


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "fridgefriend" in capsys.readouterr().out


def test_list_empty(config_path, capsys):
    path, _ = config_path
    main(["-c", str(path), "list"])
    assert "Inventory is empty." in capsys.readouterr().out


def test_list_json(config_path, capsys):
    path, db_path = config_path
    _stock(db_path, "cheese", date(2030, 1, 2))
    _stock(db_path, "milk", date(2030, 1, 1))

    main(["-c", str(path), "list", "--json"])
    items = json.loads(capsys.readouterr().out)

    assert [i["product_name"] for i in items] == ["milk", "cheese"]
    assert items[0]["formatted_expiry"] == "Jan 01, 2030"
    assert "remaining_days" in items[0]


def test_delete(config_path, capsys):
    path, db_path = config_path
    item_id = _stock(db_path, "milk", date(2030, 1, 1))

    main(["-c", str(path), "delete", str(item_id)])
    assert f"Deleted item #{item_id}" in capsys.readouterr().out

    with pytest.raises(SystemExit) as exc:
        main(["-c", str(path), "delete", str(item_id)])
    assert exc.value.code == 1


class TestDetectCommand:
    def test_prints_draft(self, config_path, backends, capsys):
        path, _ = config_path
        main([
            "-c", str(path), "detect", "--image", "fridge.jpg",
            "--purchase-date", "2024-01-01",
        ])
        out = capsys.readouterr().out
        assert "banana x1" in out
        assert "confidence : 90%" in out
        assert "freshness  : Fresh (0.0% spoiled)" in out
        assert "expires    : Jan 08, 2024" in out
        assert backends["detector"].disposed

    def test_json_output(self, config_path, backends, capsys):
        path, _ = config_path
        main([
            "-c", str(path), "detect", "--image", "fridge.jpg",
            "--purchase-date", "2024-01-01", "--quantity", "3", "--json",
        ])
        data = json.loads(capsys.readouterr().out)
        assert data["product_name"] == "banana"
        assert data["quantity"] == 3
        assert data["expiry_date"] == "2024-01-08"
        assert data["spoilage"]["level"] == "Fresh"
        assert data["low_confidence"] is False

    def test_save_adds_to_inventory(self, config_path, backends, capsys):
        path, db_path = config_path
        main([
            "-c", str(path), "detect", "--image", "fridge.jpg",
            "--purchase-date", "2024-01-01", "--save",
        ])
        assert "Saved as item #1" in capsys.readouterr().out

        rows = _rows(db_path)
        assert len(rows) == 1
        assert rows[0]["product_name"] == "banana"
        assert rows[0]["expiry_date"] == "2024-01-08"
        assert rows[0]["spoilage_level"] == "Fresh"

    def test_low_confidence_suggests_flag(self, config_path, backends, capsys):
        path, db_path = config_path
        backends["detector"] = ScriptedDetector([[det("banana", 0.4)]])

        with pytest.raises(SystemExit) as exc:
            main(["-c", str(path), "detect", "--image", "fridge.jpg", "--save"])
        assert exc.value.code == 1

        err = capsys.readouterr().err
        assert "low confidence" in err
        assert "banana (40%)" in err
        assert "--accept-low-confidence" in err
        assert _rows(db_path) == []

    def test_accept_low_confidence(self, config_path, backends, capsys):
        path, db_path = config_path
        backends["detector"] = ScriptedDetector([[det("banana", 0.4)]])

        main([
            "-c", str(path), "detect", "--image", "fridge.jpg",
            "--accept-low-confidence", "--save",
        ])
        assert "(low confidence)" in capsys.readouterr().out
        assert _rows(db_path)[0]["low_confidence"] == 1

    def test_no_food_detected(self, config_path, backends, capsys):
        path, _ = config_path
        backends["detector"] = ScriptedDetector([[det("person", 0.99)]])

        with pytest.raises(SystemExit) as exc:
            main(["-c", str(path), "detect", "--image", "fridge.jpg"])
        assert exc.value.code == 1
        assert "no food item detected" in capsys.readouterr().err
        assert backends["detector"].calls == 2

    def test_missing_image_reports_error(self, config_path, capsys, monkeypatch):
        path, _ = config_path
        monkeypatch.setattr(
            "fridgefriend.vision.create_detector",
            lambda config: ScriptedDetector([]),
        )
        monkeypatch.setattr(
            "fridgefriend.ocr.create_ocr_engine", lambda config: StaticOCR()
        )

        with pytest.raises(SystemExit) as exc:
            main(["-c", str(path), "detect", "--image", "/nonexistent/fridge.jpg"])
        assert exc.value.code == 1
        assert "Image not found" in capsys.readouterr().err


class TestLabelCommand:
    def test_prints_printed_date(self, config_path, backends, capsys):
        path, _ = config_path
        main([
            "-c", str(path), "label", "--image", "label.jpg",
            "--purchase-date", "2024-05-01",
        ])
        assert "Expiry date: May 12, 2024" in capsys.readouterr().out

    def test_json_output(self, config_path, backends, capsys):
        path, _ = config_path
        main([
            "-c", str(path), "label", "--image", "label.jpg",
            "--purchase-date", "2024-05-01", "--json",
        ])
        data = json.loads(capsys.readouterr().out)
        assert data == {
            "expiry_date": "2024-05-12",
            "printed_date": "2024-05-12",
            "used_fallback": False,
            "error": None,
        }

    def test_fallback_when_no_date(self, config_path, backends, capsys):
        path, _ = config_path
        backends["ocr"] = StaticOCR("Net weight 500 g")
        main([
            "-c", str(path), "label", "--image", "label.jpg",
            "--purchase-date", "2024-05-01",
        ])
        assert "defaulting to May 31, 2024" in capsys.readouterr().out

    def test_ocr_failure_reports_and_falls_back(self, config_path, backends, capsys):
        path, _ = config_path
        backends["ocr"] = StaticOCR(error=RuntimeError("service down"))
        main([
            "-c", str(path), "label", "--image", "label.jpg",
            "--purchase-date", "2024-05-01",
        ])
        captured = capsys.readouterr()
        assert "OCR error: processing failed" in captured.err
        assert "defaulting to May 31, 2024" in captured.out

    def test_save_under_name(self, config_path, backends, capsys):
        path, db_path = config_path
        main([
            "-c", str(path), "label", "--image", "label.jpg",
            "--purchase-date", "2024-05-01", "--save", "yogurt", "--quantity", "4",
        ])
        rows = _rows(db_path)
        assert len(rows) == 1
        assert rows[0]["product_name"] == "yogurt"
        assert rows[0]["quantity"] == 4
        assert rows[0]["expiry_date"] == "2024-05-12"
        assert rows[0]["confidence"] is None
