"""Load user scripts as Python modules."""

from __future__ import annotations

import hashlib
import sys
from importlib import util as importlib_util
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

from loguru import logger

from pdbridge.errors import ScriptLoadError, ScriptNotSpecifiedError

if TYPE_CHECKING:
    from pdbridge.api import ScriptApi

SCRIPT_API_NAME = "pd"


def load_script(path: Path | str | None, api: ScriptApi) -> ModuleType:
    """Execute the script at `path` with `pd` bound to `api` in its namespace.

    Raises `ScriptNotSpecifiedError` when no path is given and
    `ScriptLoadError` when the file is missing or raises during import.
    """

    if path is None or str(path).strip() == "":
        raise ScriptNotSpecifiedError()

    script_file = Path(path).expanduser().resolve()
    if not script_file.is_file():
        raise ScriptLoadError(f"script not found: {script_file}")

    module_name = module_name_for_script(script_file)
    try:
        module = _load_module_from_file(module_name=module_name, script_file=script_file, api=api)
    except Exception as exc:
        raise ScriptLoadError(f"{type(exc).__name__}: {exc}") from exc
    logger.info("script.loaded path={} module={}", script_file, module_name)
    return module


def module_name_for_script(script_file: Path) -> str:
    digest = hashlib.sha256(str(script_file).encode("utf-8")).hexdigest()[:12]
    normalized_name = "".join(ch if ch.isalnum() else "_" for ch in script_file.stem.lower())
    return f"pdbridge_script_{normalized_name}_{digest}"


def _load_module_from_file(*, module_name: str, script_file: Path, api: ScriptApi) -> ModuleType:
    spec = importlib_util.spec_from_file_location(module_name, script_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"failed to build module spec for {script_file}")

    module = importlib_util.module_from_spec(spec)
    setattr(module, SCRIPT_API_NAME, api)
    sys.modules.pop(module_name, None)
    sys.modules[module_name] = module
    script_dir = str(script_file.parent)
    added_path = script_dir not in sys.path
    if added_path:
        sys.path.insert(0, script_dir)
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        if added_path and script_dir in sys.path:
            sys.path.remove(script_dir)
        raise
    return module
