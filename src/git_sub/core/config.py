"""Settings for git-sub, read from git config and the environment.

Recognised git config keys (in the root repository or the user's config)::

    [sub]
        color = auto | always | never
        logLimit = 20
"""

import logging
import os
from enum import Enum
from typing import Mapping, Optional

from git import Repo
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_SECTION = "sub"


class ColorMode(str, Enum):
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class Settings(BaseModel):
    """Resolved settings for one invocation."""

    color: ColorMode = ColorMode.AUTO
    log_limit: Optional[int] = Field(default=None, ge=0)


def _read_git_config(repo: Repo) -> dict:
    # get_value() raises on a missing key unless the default is not None.
    values = {}
    with repo.config_reader() as reader:
        color = reader.get_value(CONFIG_SECTION, "color", default="")
        if color != "":
            values["color"] = str(color).lower()
        limit = reader.get_value(CONFIG_SECTION, "logLimit", default="")
        if limit != "":
            values["log_limit"] = limit
    return values


def load_settings(
    repo: Optional[Repo] = None,
    force_color: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Merge defaults, git config, environment and command-line flags.

    Later sources win: git config, then ``CLICOLOR_FORCE``, then
    ``NO_COLOR``, then ``force_color``.
    """
    env = os.environ if environ is None else environ
    values = _read_git_config(repo) if repo is not None else {}
    try:
        settings = Settings(**values)
    except ValidationError as e:
        logger.warning("Ignoring invalid [%s] git config: %s", CONFIG_SECTION, e)
        settings = Settings()

    clicolor_force = env.get("CLICOLOR_FORCE", "")
    if clicolor_force and clicolor_force != "0":
        settings.color = ColorMode.ALWAYS
    if env.get("NO_COLOR"):
        settings.color = ColorMode.NEVER
    if force_color:
        settings.color = ColorMode.ALWAYS
    return settings
