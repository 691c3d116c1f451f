"""Entry point for ``python -m vrc_group_tracker``."""

from vrc_group_tracker.main import console_entrypoint

if __name__ == "__main__":  # pragma: no cover - manual execution path
    console_entrypoint()
