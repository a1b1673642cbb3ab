"""Runtime configuration for qiita-sync.

Reads Qiita connection and mapping settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    QIITA_ACCESS_TOKEN: Qiita personal access token (required to publish)
    QIITA_API_BASE_URL: Qiita base URL (optional, default: https://qiita.com)
    QIITA_TIMEOUT: Read timeout in seconds for API calls (optional, default: 60)
    MAPPING_FILEPATH: Path of the mapping file (optional, default: mapping.txt)
    STRICT: Fail updates of unmapped articles instead of creating them
        (optional, default: false)
    MATCH_STRATEGY: "prefix" or "exact" mapping line matching
        (optional, default: prefix)
    ARTICLE_ROOT: Directory mapping paths are relative to
        (optional, default: current directory)
    QIITA_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://qiita.com"
DEFAULT_MAPPING_FILEPATH = "mapping.txt"
DEFAULT_TIMEOUT = 60
VALID_MATCH_STRATEGIES = ("prefix", "exact")


@dataclass
class Config:
    access_token: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    mapping_filepath: str = DEFAULT_MAPPING_FILEPATH
    strict: bool = False
    match_strategy: str = "prefix"
    article_root: str = "."
    timeout: int = DEFAULT_TIMEOUT
    debug: bool = False


def validate_config(config: Config, require_token: bool = True) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.
        require_token: Whether an access token must be present.  Commands
            that only read the mapping file pass ``False``.

    Raises:
        ValueError: If the URL, strategy, timeout or token is invalid.
    """
    config.api_base_url = config.api_base_url.strip()

    if not config.api_base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid Qiita URL '{config.api_base_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_base_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid Qiita URL '{config.api_base_url}': URL must include a hostname"
        )

    config.api_base_url = config.api_base_url.removesuffix("/")

    if config.match_strategy not in VALID_MATCH_STRATEGIES:
        raise ValueError(
            f"Invalid match strategy '{config.match_strategy}': "
            "must be 'prefix' or 'exact'"
        )

    if not (1 <= config.timeout <= 600):
        raise ValueError(
            f"Invalid timeout '{config.timeout}': must be a number between 1 and 600"
        )

    if not config.mapping_filepath.strip():
        raise ValueError(
            "Mapping file path cannot be empty. Set MAPPING_FILEPATH environment variable."
        )

    if require_token and not config.access_token.strip():
        raise ValueError(
            "Qiita access token not found. Set QIITA_ACCESS_TOKEN environment "
            "variable, pass --token CLI argument, or add 'access_token' to config.yml."
        )

    if config.api_base_url.startswith("http://"):
        logger.warning(
            "WARNING: Qiita URL uses plain http; the access token is sent unencrypted."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.strip().lower() in ("true", "1", "yes", "on")


def load_config(
    access_token: str | None = None,
    mapping_filepath: str | None = None,
    strict: bool | None = None,
    match_strategy: str | None = None,
    article_root: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
    require_token: bool = True,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        access_token: Override Qiita access token.
        mapping_filepath: Override mapping file location.
        strict: Override strict policy (``None`` means not given on the CLI).
        match_strategy: Override mapping match strategy.
        article_root: Override article root directory.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file
            (see ``config_schema.to_yaml_fallbacks``).
        require_token: Whether a missing access token is an error.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is invalid or the token is missing while
            required.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > default ---

    final_token = (
        access_token
        or os.getenv("QIITA_ACCESS_TOKEN")
        or fb.get("access_token")
        or ""
    ).strip()

    final_base_url = (
        os.getenv("QIITA_API_BASE_URL")
        or fb.get("api_base_url")
        or DEFAULT_API_BASE_URL
    )

    final_mapping = (
        mapping_filepath
        or os.getenv("MAPPING_FILEPATH")
        or fb.get("mapping_filepath")
        or DEFAULT_MAPPING_FILEPATH
    )

    final_strategy = (
        match_strategy
        or os.getenv("MATCH_STRATEGY")
        or fb.get("match_strategy")
        or "prefix"
    ).strip().lower()

    final_root = (
        article_root
        or os.getenv("ARTICLE_ROOT")
        or fb.get("article_root")
        or "."
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    if strict is not None:
        final_strict = strict
    else:
        env_strict = _get_bool_env("STRICT")
        if env_strict is not None:
            final_strict = env_strict
        else:
            final_strict = bool(fb.get("strict", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("QIITA_SYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields: env > YAML > default ---

    timeout_raw = os.getenv("QIITA_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = int(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid QIITA_TIMEOUT '{timeout_raw}': must be a number between 1 and 600"
            ) from None
    elif "timeout" in fb:
        final_timeout = int(fb["timeout"])
    else:
        final_timeout = DEFAULT_TIMEOUT

    config = Config(
        access_token=final_token,
        api_base_url=final_base_url,
        mapping_filepath=final_mapping,
        strict=final_strict,
        match_strategy=final_strategy,
        article_root=final_root,
        timeout=final_timeout,
        debug=final_debug,
    )

    validate_config(config, require_token=require_token)

    return config
