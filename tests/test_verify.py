from __future__ import annotations

from pathlib import Path

from vmware_patch.verify import verify_changes


def test_verification_flags_missing_renderer_line(desktop_home) -> None:
    report = verify_changes(desktop_home.config())

    assert not report.ok
    assert any("found: 0" in problem for problem in report.problems)


def test_verification_passes_with_single_renderer_and_executable_menu(desktop_home) -> None:
    desktop_home.env_file.write_text("export GSK_RENDERER=cairo\n", encoding="utf-8")

    report = verify_changes(desktop_home.config())

    assert report.ok
    assert report.format_lines() == ["verify_changes: OK"]


def test_verification_reports_every_problem(desktop_home) -> None:
    desktop_home.env_file.write_text(
        "export GSK_RENDERER=cairo\nexport GSK_RENDERER=cairo\n", encoding="utf-8"
    )
    desktop_home.menu_file.chmod(0o644)

    report = verify_changes(desktop_home.config())

    assert len(report.problems) == 2
    assert "found: 2" in report.problems[0]
    assert "found: 644" in report.problems[1]


def test_verification_reports_missing_files(desktop_home) -> None:
    desktop_home.env_file.unlink()
    desktop_home.menu_file.unlink()

    report = verify_changes(desktop_home.config())

    assert [problem.endswith("not found") for problem in report.problems] == [True, True]


def test_verification_records_stat_errors(desktop_home, monkeypatch) -> None:
    desktop_home.env_file.write_text("export GSK_RENDERER=cairo\n", encoding="utf-8")
    menu_file = desktop_home.menu_file
    real_stat = Path.stat

    def deny(self: Path, *args, **kwargs):
        if self == menu_file:
            raise PermissionError(13, "Permission denied", str(self))
        return real_stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", deny)

    report = verify_changes(desktop_home.config())

    assert len(report.problems) == 1
    assert report.problems[0].startswith(f"unable to stat {menu_file}")
