import os

# Keep app startup (init_db) off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from meetpair.models.bout import Bout  # noqa: E402,F401
from meetpair.models.excluded_pair import ExcludedPair  # noqa: E402,F401
from meetpair.models.meet import Meet, MeetTeam  # noqa: E402,F401
from meetpair.models.meet_checkpoint import MeetCheckpoint  # noqa: E402,F401
from meetpair.models.meet_change import MeetChange  # noqa: E402,F401
from meetpair.models.meet_wrestler_status import MeetWrestlerStatus  # noqa: E402,F401
from meetpair.models.team import Team, TeamMatRule  # noqa: E402,F401
from meetpair.models.wrestler import Wrestler  # noqa: E402,F401
