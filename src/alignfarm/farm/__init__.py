"""Farm client registry, mapping farm_type → lazy-import class path."""

AVAILABLE_FARMS: dict[str, str] = {
    "lsf": "alignfarm.farm.lsf.LsfFarmClient",
    "local": "alignfarm.farm.local.LocalFarmClient",
}


def import_farm_client(dotted_path: str):
    """Import a farm client class from its dotted module path."""
    import importlib

    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def build_farm_client(settings):
    """Farm client for the configured execution mode."""
    if settings.no_farm:
        return import_farm_client(AVAILABLE_FARMS["local"])()
    return import_farm_client(AVAILABLE_FARMS["lsf"])(settings.bsub_path)
