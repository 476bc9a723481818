import hashlib
import os
import tempfile


def ensure_dir(path: str) -> None:
    """Create directory if missing (mkdir -p equivalent)."""
    os.makedirs(path, exist_ok=True)


def write_atomic(path: str, data, mode: str = "wb") -> None:
    """Write data to a temporary file then atomically rename to target path."""
    dir_path = os.path.dirname(path)
    ensure_dir(dir_path)
    fd, tmp_path = tempfile.mkstemp(dir=dir_path)
    try:
        with os.fdopen(fd, mode) as f:
            f.write(data)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def certificate_dir(site_root: str, user_id: int) -> str:
    return os.path.join(site_root, "certificates", str(user_id))


def archive_certificate(
    site_root: str, user_id: int, filename: str, pdf_bytes: bytes
) -> tuple[str, str]:
    """Store a generated PDF under the site root; return (path, sha256)."""
    path = os.path.join(certificate_dir(site_root, user_id), filename)
    write_atomic(path, pdf_bytes)
    return path, hashlib.sha256(pdf_bytes).hexdigest()
