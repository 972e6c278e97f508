from importlib import import_module

__all__ = [
    "dune_client",
    "DuneClient",
    "leaderboard_cache",
    "LeaderboardCache",
    "profile_synthesizer",
    "ProfileSynthesizer",
    "calculate_protocol_stats",
]

_LAZY_EXPORTS = {
    "dune_client": ("services.dune", "dune_client"),
    "DuneClient": ("services.dune", "DuneClient"),
    "leaderboard_cache": ("services.leaderboard_cache", "leaderboard_cache"),
    "LeaderboardCache": ("services.leaderboard_cache", "LeaderboardCache"),
    "profile_synthesizer": ("services.profile_synth", "profile_synthesizer"),
    "ProfileSynthesizer": ("services.profile_synth", "ProfileSynthesizer"),
    "calculate_protocol_stats": ("services.stats", "calculate_protocol_stats"),
}


def __getattr__(name):
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module 'services' has no attribute {name!r}")

    module_name, attr_name = _LAZY_EXPORTS[name]
    module = import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value
