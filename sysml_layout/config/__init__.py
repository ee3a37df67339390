from sysml_layout.config.settings import get_all_settings, get_setting, set_setting

__all__ = ["get_setting", "get_all_settings", "set_setting"]
