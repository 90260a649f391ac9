"""
Application context shared by the command-line screens.

Holds what the whole app needs at once (signed-in user, profile, theme, the
store and the provider) and saves every change immediately.
"""
import logging
from typing import Optional

from .config import Config, THEMES, DEFAULT_THEME
from .infrastructure.data import LocalStore
from .infrastructure.llm import VertexRestClient
from .interview.events import SessionEventBus, EventLogger, SessionMetrics
from .interview.models import AuthUser, UserProfile
from .interview.services import InterviewProvider, CoachChat

logger = logging.getLogger("app")


class AppContext:
    """Explicit replacement for app-wide global state."""

    def __init__(self, config: Config, store: Optional[LocalStore] = None,
                 provider: Optional[InterviewProvider] = None):
        self.config = config
        self.store = store or LocalStore(config.workdir)

        if provider is None:
            client = VertexRestClient(
                project=config.google_cloud_project,
                location=config.vertex_location,
                credentials_json=config.google_application_credentials,
            )
            provider = InterviewProvider(client)
        self.provider = provider

        self.event_bus = SessionEventBus()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(EventLogger().handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self._profile = self.store.get_profile()
        self._user = self.store.get_user()
        theme = self.store.get_theme()
        self._theme = theme if theme in THEMES else DEFAULT_THEME
        logger.info(f"App context loaded (profile={'yes' if self._profile else 'no'}, theme={self._theme})")

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @profile.setter
    def profile(self, profile: UserProfile) -> None:
        self._profile = profile
        self.store.save_profile(profile)

    @property
    def user(self) -> Optional[AuthUser]:
        return self._user

    @user.setter
    def user(self, user: Optional[AuthUser]) -> None:
        self._user = user
        self.store.save_user(user)

    @property
    def theme(self) -> str:
        return self._theme

    @theme.setter
    def theme(self, theme_id: str) -> None:
        if theme_id not in THEMES:
            raise ValueError(f"Unknown theme: {theme_id}")
        self._theme = theme_id
        self.store.save_theme(theme_id)

    def logout(self) -> None:
        self.user = None

    def new_coach_chat(self) -> CoachChat:
        return CoachChat(self.provider.client)
