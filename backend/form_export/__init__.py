from form_export.version import APP_VERSION

__all__ = ["APP_VERSION"]
