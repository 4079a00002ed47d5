APP_NAME = "App Grid Wizard"
APP_ID = "app-grid-wizard"
APP_AUTHOR = "Mahdi Mirzadeh"

# Keep in step with pyproject.toml.
APP_VERSION = "1.0.0"

PROJECT_URL = "https://github.com/MahdiMirzadeh/app-grid-wizard"


def get_app_display_name(version=None):
    version = version or APP_VERSION
    return f"{APP_NAME} v{version}"


APP_DISPLAY_NAME = get_app_display_name(APP_VERSION)
