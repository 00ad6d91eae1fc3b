from tweetdetect.patterns.store import (
    CompiledPattern,
    LoadState,
    PatternConfig,
    PatternStore,
    default_config,
)

__all__ = [
    "CompiledPattern",
    "LoadState",
    "PatternConfig",
    "PatternStore",
    "default_config",
]
