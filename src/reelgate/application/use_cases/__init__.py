from .player_page import PlayerPage, PlayerPageUseCase
from .resolve_playback import ResolvePlaybackUseCase

__all__ = ["PlayerPage", "PlayerPageUseCase", "ResolvePlaybackUseCase"]
