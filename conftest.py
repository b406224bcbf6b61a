"""Global pytest configuration."""

import os

from ai_proxy.app.config import Settings

# Keep tests hermetic: no setting may leak in from the shell
_SETTINGS_ENV = {name.upper() for name in Settings.model_fields}
for _name in list(os.environ):
    if _name.upper() in _SETTINGS_ENV:
        os.environ.pop(_name, None)
