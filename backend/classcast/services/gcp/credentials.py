"""Shared credential setup for Google Cloud client libraries."""

import os

from classcast.config.settings import settings


def ensure_credentials():
    """Ensure GOOGLE_APPLICATION_CREDENTIALS is set in the environment."""
    if settings.GOOGLE_APPLICATION_CREDENTIALS and "GOOGLE_APPLICATION_CREDENTIALS" not in os.environ:
        creds_path = settings.GOOGLE_APPLICATION_CREDENTIALS
        # Handle Docker path when running locally
        if creds_path.startswith("/app/") and not os.path.exists(creds_path):
            possible_paths = [
                creds_path.replace("/app/", ""),
                os.path.join("config", os.path.basename(creds_path)),
                os.path.join(os.getcwd(), "config", os.path.basename(creds_path)),
            ]

            for path in possible_paths:
                if os.path.exists(path):
                    creds_path = path
                    break

        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = creds_path
