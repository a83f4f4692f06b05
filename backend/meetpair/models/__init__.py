from meetpair.models.bout import Bout
from meetpair.models.excluded_pair import ExcludedPair
from meetpair.models.meet import Meet, MeetTeam
from meetpair.models.meet_checkpoint import MeetCheckpoint
from meetpair.models.meet_change import MeetChange
from meetpair.models.meet_wrestler_status import MeetWrestlerStatus
from meetpair.models.team import Team, TeamMatRule
from meetpair.models.wrestler import Wrestler

__all__ = [
    "Bout",
    "ExcludedPair",
    "Meet",
    "MeetChange",
    "MeetCheckpoint",
    "MeetTeam",
    "MeetWrestlerStatus",
    "Team",
    "TeamMatRule",
    "Wrestler",
]
