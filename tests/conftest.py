from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Iterator, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


@pytest.fixture(autouse=True)
def _fresh_lambda_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Each test starts with an empty lambda cache and the default host."""
    from ktlambda.compiler import clear_cache
    from ktlambda.host import PythonHost, set_default_host

    package_logger = logging.getLogger("ktlambda")
    log_level = package_logger.level
    monkeypatch.delenv("KTLAMBDA_DEBUG_PY_TRACE", raising=False)
    monkeypatch.delenv("KTLAMBDA_LOG_LEVEL", raising=False)
    clear_cache()
    previous = set_default_host(PythonHost())
    yield
    set_default_host(previous)
    clear_cache()
    package_logger.setLevel(log_level)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if pytest ever generates duplicate node IDs."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        nodeid = item.nodeid
        if nodeid in seen:
            duplicates.append(nodeid)
            continue
        seen[nodeid] = 1

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
    raise pytest.UsageError(
        "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
    )
