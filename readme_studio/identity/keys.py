"""Local Ed25519 key material for signing and verifying identity tokens."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from readme_studio.config import resolve_home


@dataclass(frozen=True)
class KeyPaths:
    """Where the signing key pair lives."""

    home_dir: Path
    private_key_path: Path
    public_key_path: Path


def key_paths(home_dir: Path | None = None) -> KeyPaths:
    """Return the key pair locations under the data directory."""
    resolved_home = (home_dir or resolve_home()).expanduser().resolve()
    return KeyPaths(
        home_dir=resolved_home,
        private_key_path=resolved_home / "keys" / "signing_key.pem",
        public_key_path=resolved_home / "keys" / "verify_key.pem",
    )


def init_keys(home_dir: Path | None = None, *, force: bool = False) -> KeyPaths:
    """Create the signing key pair unless one already exists."""
    paths = key_paths(home_dir)
    if not force and paths.private_key_path.exists() and paths.public_key_path.exists():
        return paths
    paths.private_key_path.parent.mkdir(parents=True, exist_ok=True)

    signing_key = Ed25519PrivateKey.generate()
    paths.private_key_path.write_bytes(
        signing_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    paths.public_key_path.write_bytes(
        signing_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    try:
        os.chmod(paths.private_key_path, 0o600)
    except OSError:
        pass
    return paths


def load_private_key(home_dir: Path | None = None) -> Ed25519PrivateKey:
    """Load the key used to mint tokens."""
    paths = key_paths(home_dir)
    if not paths.private_key_path.exists():
        raise FileNotFoundError("Signing key not found. Run 'readme-studio keys init'.")
    key = serialization.load_pem_private_key(paths.private_key_path.read_bytes(), password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError("Unsupported private key type; expected Ed25519.")
    return key


def load_public_key(home_dir: Path | None = None) -> Ed25519PublicKey | None:
    """Load the verification key, or None when keys were never initialized."""
    paths = key_paths(home_dir)
    if not paths.public_key_path.exists():
        return None
    key = serialization.load_pem_public_key(paths.public_key_path.read_bytes())
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError("Unsupported public key type; expected Ed25519.")
    return key
