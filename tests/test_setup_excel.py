"""Tests for the workbook bootstrap script."""

from __future__ import annotations

import openpyxl
import pytest

from threewheel_ledger import constants, data_manager, setup_excel


def test_build_master_workbook_creates_every_sheet():
    """All ledger sheets exist with headers and the default sheet is gone."""

    workbook = setup_excel.build_master_workbook(seed_demo=False)

    assert workbook.sheetnames == list(constants.SHEET_COLUMNS)
    for sheet_name, columns in constants.SHEET_COLUMNS.items():
        assert [cell.value for cell in workbook[sheet_name][1]] == list(columns)
    assert data_manager.load_vehicles(workbook) == []


def test_create_master_workbook_refuses_to_overwrite(tmp_path):
    """Existing files are preserved unless overwrite is requested."""

    target = tmp_path / "ledger.xlsx"
    setup_excel.create_master_workbook(target, seed_demo=False)

    with pytest.raises(FileExistsError):
        setup_excel.create_master_workbook(target)

    setup_excel.create_master_workbook(target, overwrite=True)
    workbook = openpyxl.load_workbook(target)
    assert len(data_manager.load_vehicles(workbook)) == len(data_manager.DEMO_VEHICLES)


def test_main_creates_workbook_from_config(tmp_path, capsys):
    """The console script honours DataFile and --empty."""

    config_path = tmp_path / "config.ini"
    config_path.write_text("[System]\nDataFile = data/ledger.xlsx\n")

    assert setup_excel.main(["--config", str(config_path), "--empty"]) == 0

    workbook = openpyxl.load_workbook(tmp_path / "data" / "ledger.xlsx")
    assert data_manager.load_sales(workbook) == []
    assert "[SUCCESS]" in capsys.readouterr().out


def test_main_reports_missing_config(tmp_path, capsys):
    """A missing config file is reported rather than raised."""

    assert setup_excel.main(["--config", str(tmp_path / "absent.ini")]) == 1
    assert "[ERROR]" in capsys.readouterr().out
