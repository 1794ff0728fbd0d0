from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field


class LeagueUser(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def team_name(self) -> Optional[str]:
        return (self.metadata or {}).get("team_name") or None


class League(BaseModel):
    league_id: str
    name: Optional[str] = None
    season: str
    status: Optional[str] = None
    total_rosters: Optional[int] = None
    previous_league_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    roster_positions: List[str] = Field(default_factory=list)

    @property
    def predecessor_id(self) -> Optional[str]:
        """The previous season's league id, or None at the start of the chain."""
        if not self.previous_league_id or self.previous_league_id == "0":
            return None
        return self.previous_league_id


class Roster(BaseModel):
    roster_id: int
    owner_id: Optional[str] = None
    players: Optional[List[str]] = None
    starters: Optional[List[str]] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None


class Matchup(BaseModel):
    roster_id: int
    matchup_id: Optional[int] = None
    points: Optional[float] = None
    players: Optional[List[str]] = None
    starters: Optional[List[str]] = None
    players_points: Optional[Dict[str, float]] = None


class DraftPickMovement(BaseModel):
    season: str
    round: int
    roster_id: int  # ORIGINAL owner of the pick (who initially had this draft slot)
    owner_id: int   # NEW owner after this trade (who's receiving the pick)
    previous_owner_id: int  # Roster TRADING AWAY the pick in this transaction


class Transaction(BaseModel):
    transaction_id: str
    type: str
    status: str
    created: Optional[int] = None  # Unix timestamp in ms
    status_updated: Optional[int] = None
    roster_ids: List[int] = Field(default_factory=list)
    adds: Optional[Dict[str, int]] = None
    drops: Optional[Dict[str, int]] = None
    draft_picks: Optional[List[DraftPickMovement]] = None
    metadata: Optional[Dict[str, Any]] = None


class Draft(BaseModel):
    draft_id: str
    season: Optional[str] = None
    type: str = "snake"
    status: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    slot_to_roster_id: Optional[Dict[str, Optional[int]]] = None
    draft_order: Optional[Dict[str, int]] = None  # user_id -> draft_slot

    @property
    def teams(self) -> Optional[int]:
        return self.settings.get("teams")


class Pick(BaseModel):
    pick_no: int
    round: int
    roster_id: Optional[int] = None
    player_id: str
    picked_by: Optional[str] = None
    draft_slot: Optional[int] = None
    is_keeper: Optional[bool] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def player_name(self) -> str:
        first = self.metadata.get("first_name") or ""
        last = self.metadata.get("last_name") or ""
        return f"{first} {last}".strip()

    @property
    def position(self) -> Optional[str]:
        return self.metadata.get("position") or None


class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None
    age: Optional[int] = None

    @property
    def name(self) -> str:
        if self.first_name or self.last_name:
            return f"{self.first_name or ''} {self.last_name or ''}".strip()
        return self.full_name or self.player_id


class TradedPick(BaseModel):
    """A future pick whose ownership has changed hands (league traded_picks endpoint)."""
    season: str
    round: int
    roster_id: int  # Original owner
    owner_id: int   # Current owner
    previous_owner_id: Optional[int] = None


class BracketMatch(BaseModel):
    r: int  # round
    m: Optional[int] = None  # match id
    w: Optional[int] = None  # winning roster_id
    l: Optional[int] = None  # losing roster_id
    p: Optional[int] = None  # placement decided by this match


class DraftBundle(BaseModel):
    draft: Draft
    picks: List[Pick] = Field(default_factory=list)


class SeasonBundle(BaseModel):
    """Everything fetched for one season, handed to the pipeline in one piece."""
    league: League
    rosters: List[Roster] = Field(default_factory=list)
    users: List[LeagueUser] = Field(default_factory=list)
    weekly_matchups: List[List[Matchup]] = Field(default_factory=list)  # index 0 = week 1
    weekly_transactions: List[List[Transaction]] = Field(default_factory=list)  # index 0 = week 1
    drafts: List[DraftBundle] = Field(default_factory=list)
    winners_bracket: List[BracketMatch] = Field(default_factory=list)
    traded_picks: List[TradedPick] = Field(default_factory=list)
