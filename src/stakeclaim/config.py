"""Runtime settings (config.toml) and the account file (config.txt)."""

import logging
import os
import tomllib
from pathlib import Path

import base58
import pyntelope
from Crypto.Hash import RIPEMD160

import stakeclaim.constants as C
from stakeclaim.models import Account

log = logging.getLogger("stakeclaim.config")

pkg_root = Path(__file__).parent
config_file = pkg_root / "config.toml"


class ConfigError(ValueError):
    """Missing or malformed configuration. Fatal at startup."""


def load_config(path: str | Path | None = None) -> dict:
    """Read the TOML settings and apply environment overrides."""
    source = Path(path) if path is not None else config_file
    try:
        cfg = tomllib.loads(source.read_text())
    except FileNotFoundError as e:
        raise ConfigError(f"Settings file {source} does not exist") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Unable to parse settings file {source}: {e}") from e

    for section in ("chain", "schedule", "timeout"):
        if section not in cfg:
            raise ConfigError(f"Settings file {source} is missing the [{section}] table")

    if endpoints := os.getenv("STAKECLAIM_ENDPOINTS"):
        cfg["chain"]["endpoints"] = [e.strip() for e in endpoints.split(",") if e.strip()]
    if rpc_timeout := os.getenv("STAKECLAIM_RPC_TIMEOUT"):
        try:
            cfg["timeout"]["rpc"] = float(rpc_timeout)
        except ValueError as e:
            raise ConfigError(f"STAKECLAIM_RPC_TIMEOUT must be a number, got {rpc_timeout!r}") from e
    return cfg


def validate_private_key(key: str) -> str:
    """Check that `key` is a usable secp256k1 private key string.

    Accepts legacy WIF and PVT_K1_ keys. The signer only takes WIF, so a
    PVT_K1_ key is returned re-encoded as WIF; a WIF key is returned unchanged.

    Raises:
        ValueError: the key does not decode or has the wrong shape.
    """
    if key.startswith(C.K1_PRIVATE_PREFIX):
        raw = base58.b58decode(key[len(C.K1_PRIVATE_PREFIX):])
        if len(raw) != C.SECRET_LENGTH + 4:
            raise ValueError(f"PVT_K1 key must decode to {C.SECRET_LENGTH + 4} bytes, got {len(raw)}")
        secret, checksum = raw[:-4], raw[-4:]
        if RIPEMD160.new(secret + b"K1").digest()[:4] != checksum:
            raise ValueError("PVT_K1 key checksum mismatch")
        return base58.b58encode_check(bytes([C.WIF_VERSION]) + secret).decode("ascii")

    raw = base58.b58decode_check(key)
    if len(raw) != C.SECRET_LENGTH + 1 or raw[0] != C.WIF_VERSION:
        raise ValueError("not a WIF private key")
    return key


def validate_name(value: str) -> str:
    """Check an account or permission name against the chain's name rules.

    Raises:
        ValueError: not a valid name (a-z, 1-5 and dots, at most 12 chars + 1).
    """
    pyntelope.types.Name(value)
    return value


def parse_accounts(path: str | Path = C.DEFAULT_ACCOUNTS_FILE) -> list[Account]:
    """Parse the account file, one `address:permission:key:proxy` per line.

    Raises:
        ConfigError: the file is missing, unreadable, empty, or has a bad line.
    """
    full_path = Path(path).resolve()
    if not full_path.is_file():
        raise ConfigError(f"Config file {path} does not exist")

    try:
        content = full_path.read_text()
    except OSError as e:
        raise ConfigError(f"Unable to read config file {full_path}: {e}") from e

    accounts: list[Account] = []
    for lineno, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith(C.COMMENT_PREFIX):
            continue

        parts = [p.strip() for p in line.split(C.FIELD_SEPARATOR)]
        if len(parts) != C.ACCOUNT_FIELDS or not all(parts):
            # Never echo the line back, it holds a private key
            raise ConfigError(
                f"Unable to parse config line {lineno}: expected {C.ACCOUNT_FIELDS} "
                f"non-empty '{C.FIELD_SEPARATOR}' separated fields, got {len(parts)}"
            )

        address, permission, key, proxy = parts
        for field, value in (("address", address), ("permission", permission), ("proxy", proxy)):
            try:
                validate_name(value)
            except ValueError as e:
                raise ConfigError(f"Invalid {field} {value!r} on line {lineno}: {e}") from e
        try:
            key = validate_private_key(key)
        except ValueError as e:
            raise ConfigError(f"Invalid private key on line {lineno}: {e}") from e

        accounts.append(Account(address=address, permission=permission, private_key=key, proxy=proxy))

    if not accounts:
        raise ConfigError(f"{full_path} has no accounts")

    log.info("Loaded %d account(s) from %s", len(accounts), full_path)
    return accounts
