import sys
from collections.abc import Callable
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))
from neoscribe.common.config import AppConfig  # noqa: E402
from neoscribe.scribe.codes import CodeTable  # noqa: E402
from neoscribe.scribe.sourcekey import SourceKey  # noqa: E402
from neoscribe.scribe.tables import ScribeTables, load_tables  # noqa: E402

DATA_DIR = Path(__file__).resolve().parent / "data"

TRECENTO_SIGNATURE = "S^C^R^I^B^E^S"
CHANT_SIGNATURE = "S^C^R^I^B^E^L"


def _trecento_header(
    rep: str = "R1",
    title: str = "Sample ballata",
    composer: str = "Landini",
    genre: str = "ballata",
    voices: str = "2",
    ms: str = "FP",
    folios: str = "12r",
    voice_type: str = "1",
) -> str:
    return (
        ">"
        + rep.ljust(10)
        + title.ljust(40)
        + composer.ljust(20)
        + genre.ljust(10)
        + voices[:1].ljust(1)
        + ms.ljust(10)
        + folios.ljust(20)
        + voice_type[:1]
    )


def _chant_header(
    ms: str = "CA",
    feast: str = "Dominica in Adventu",
    office: str = "Matins",
    genre: str = "Responsory",
    folios: str = "3v",
    cao: str = "6017",
) -> str:
    return (
        ">"
        + ms.ljust(10)
        + feast.ljust(40)
        + office.ljust(20)
        + genre.ljust(20)
        + folios.ljust(20)
        + cao.ljust(8)
    )


@pytest.fixture(scope="session")
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture(scope="session")
def trecento_codes() -> CodeTable:
    return CodeTable.load(DATA_DIR / "neumcode_trecento.csv")


@pytest.fixture(scope="session")
def chant_codes() -> CodeTable:
    return CodeTable.load(DATA_DIR / "neumcode_chant.csv")


@pytest.fixture(scope="session")
def source_key() -> SourceKey:
    return SourceKey.load(DATA_DIR / "sourcekey.tab")


@pytest.fixture(scope="session")
def tables() -> ScribeTables:
    return load_tables(AppConfig(data_dir=DATA_DIR))


@pytest.fixture()
def trecento_header() -> Callable[..., str]:
    return _trecento_header


@pytest.fixture()
def chant_header() -> Callable[..., str]:
    return _chant_header


@pytest.fixture()
def write_scribe(tmp_path: Path) -> Callable[..., Path]:
    """Write Scribe lines to a file; ``newline`` selects the line terminator."""

    def _write(name: str, lines: list[str], newline: str = "\n") -> Path:
        p = tmp_path / name
        p.write_bytes((newline.join(lines) + newline).encode("latin-1"))
        return p

    return _write
