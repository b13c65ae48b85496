import os
from pathlib import Path

import pytest

from lead_search.cli import main
from lead_search.export import read_csv

requires_live = pytest.mark.skipif(
    os.getenv("RUN_LIVE_INTEGRATION") != "1" or not os.getenv("GOOGLE_PLACES_API_KEY"),
    reason="Set RUN_LIVE_INTEGRATION=1 and GOOGLE_PLACES_API_KEY to run live integration tests.",
)


@requires_live
def test_live_search_smoke(tmp_path: Path) -> None:
    output = tmp_path / "leads.csv"
    exit_code = main(
        [
            "--progress-dir",
            str(tmp_path / "progress"),
            "search",
            "--sectors",
            "salud",
            "--provinces",
            "Madrid",
            "--max-results",
            "3",
            "--output",
            str(output),
            "--no-progress",
        ]
    )
    assert exit_code == 0
    assert len(read_csv(str(output))) <= 3
