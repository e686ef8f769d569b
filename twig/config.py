"""
Configuration for twig.

Settings come from pydantic models with defaults, overridden by
``TWIG_*`` environment variables (a ``.env`` file is honoured):

    TWIG_DIR             control directory name        (.twig)
    TWIG_DEFAULT_BRANCH  branch created by init        (master)
    TWIG_ABBREV_LENGTH   digest length in log output   (7)
    TWIG_LOG_LEVEL       console log level             (WARNING)
    TWIG_LOG_FILE        write log files when truthy   (off)
"""

import os
from pathlib import Path
from typing import List, Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from twig.logging.logger import DEFAULT_FORMAT

load_dotenv()

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

TRUTHY = ("1", "true", "yes", "on")


class RepositoryConfig(BaseModel):
    """Layout of a repository and the values init starts it with."""

    control_dir: str = Field(
        default=".twig", description="Name of the control directory in the working tree"
    )
    default_branch: str = Field(
        default="master", description="Branch created when a repository is initialized"
    )
    initial_message: str = Field(
        default="initial commit", description="Message of the root commit"
    )
    abbrev_length: int = Field(
        default=7, gt=0, description="Digest abbreviation length in log output"
    )
    ignore_patterns: List[str] = Field(
        default_factory=lambda: [".*"],
        description="fnmatch patterns for working-tree entries twig never tracks",
    )

    def control_path(self, root: Path) -> Path:
        return Path(root) / self.control_dir


class LogConfig(BaseModel):
    """Handlers installed by the CLI through initialize_logging."""

    level: LogLevel = Field(default="WARNING", description="Console log level")
    format: str = Field(default=DEFAULT_FORMAT, description="loguru format string")
    rotation: str = Field(default="10 MB", description="Size at which log files rotate")
    retention: str = Field(default="1 month", description="How long rotated logs are kept")
    log_dir: str = Field(
        default="logs", description="Log directory, relative to the control directory"
    )
    enable_file_logging: bool = Field(
        default=False, description="Write twig.log, operations.log and errors.log"
    )
    enable_console_logging: bool = Field(
        default=True, description="Write records to stderr"
    )


class Config(BaseModel):
    """Top-level twig configuration."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration from the TWIG_* environment variables."""
        return cls(
            repository=RepositoryConfig(
                control_dir=os.getenv("TWIG_DIR", ".twig"),
                default_branch=os.getenv("TWIG_DEFAULT_BRANCH", "master"),
                abbrev_length=int(os.getenv("TWIG_ABBREV_LENGTH", "7")),
            ),
            logging=LogConfig(
                level=cast(LogLevel, os.getenv("TWIG_LOG_LEVEL", "WARNING").upper()),
                enable_file_logging=os.getenv("TWIG_LOG_FILE", "").lower() in TRUTHY,
            ),
        )


config = Config.from_env()
