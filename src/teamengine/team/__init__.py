"""Team model: the single owner of member records."""

from .loader import SAMPLE_TEAM, load_team, member_from_dict, member_to_dict
from .registry import TeamModel

__all__ = ["SAMPLE_TEAM", "TeamModel", "load_team", "member_from_dict", "member_to_dict"]
