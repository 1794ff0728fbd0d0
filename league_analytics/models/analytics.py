from typing import List, Dict, Optional, Literal
from pydantic import BaseModel, Field

from .sleeper import Matchup, Roster, DraftBundle, TradedPick, Transaction


Grade = Literal["A+", "A", "B", "C", "D", "F"]
HitBust = Literal["hit", "bust", "neutral"]
FranchiseTier = Literal["Contender", "Fringe", "Rebuilding"]


class ManagerIdentity(BaseModel):
    user_id: str
    display_name: str
    team_name: str
    avatar: Optional[str] = None


class TaggedTrade(BaseModel):
    """A completed trade plus the week and season it was fetched for."""
    transaction: Transaction
    week: int
    season: str
    league_id: str

    @property
    def timestamp(self) -> int:
        return self.transaction.created or self.transaction.status_updated or 0


class SeasonRecord(BaseModel):
    season: str
    league_id: str
    regular_season_weeks: int
    roster_positions: List[str] = []
    weeks: List[List[Matchup]]  # regular-season weeks only, index 0 = week 1
    roster_to_manager: Dict[int, str]
    champion_manager_id: Optional[str] = None
    managers: Dict[str, ManagerIdentity] = {}
    rosters: List[Roster] = []
    trades: List[TaggedTrade] = []
    drafts: List[DraftBundle] = []
    traded_picks: List[TradedPick] = []


class SeasonSummary(BaseModel):
    season: str
    league_id: str
    weeks_with_data: int
    managers: int
    trades: int
    champion_manager_id: Optional[str] = None


# ---------- Replacement value ----------

class ValueRecord(BaseModel):
    entity_id: str
    position: str
    cohort: int
    pool: str = ""  # replacement levels are computed per (pool, position)
    outcome: float
    replacement_level: float
    war: float
    expected_war: float = 0.0
    surplus: float = 0.0
    hit_bust: HitBust = "neutral"
    percentile: Optional[float] = None
    grade: Optional[Grade] = None


class GradedEntry(BaseModel):
    key: str
    score: float
    rank: int
    percentile: float
    grade: Grade


# ---------- Drafts ----------

class AnalyzedPick(BaseModel):
    pick_no: int
    round: int
    player_id: str
    player_name: str
    position: str
    is_keeper: bool
    season: str
    season_points: float
    replacement_level: float
    war: float
    expected_war: float
    surplus: float
    hit_bust: HitBust = "neutral"


class DraftClassSeason(BaseModel):
    season: str
    picks: List[AnalyzedPick]
    avg_surplus: float
    hit_rate: float
    bust_rate: float
    total_war: float


class ManagerDraftSummary(BaseModel):
    user_id: str
    display_name: str
    avatar: Optional[str] = None
    total_war: float
    total_surplus: float
    avg_surplus_per_pick: float
    hit_rate: float
    bust_rate: float
    best_pick: Optional[AnalyzedPick] = None
    worst_pick: Optional[AnalyzedPick] = None
    draft_classes: List[DraftClassSeason]
    grade: Grade
    surplus_percentile: float
    league_rank: int


class LeagueDraftAnalysis(BaseModel):
    manager_summaries: Dict[str, ManagerDraftSummary] = {}
    has_data: bool = False


# ---------- Draft pick resolution ----------

class PickResolution(BaseModel):
    player_id: str
    player_name: str
    position: Optional[str] = None
    season_points: float
    pick_no: int
    pick_in_round: Optional[int] = None


class PickOwnershipHop(BaseModel):
    transaction_id: str
    week: int
    timestamp: int
    from_roster_id: int
    to_roster_id: int


class PickChain(BaseModel):
    season: str
    round: int
    original_roster_id: int
    hops: List[PickOwnershipHop]
    final_owner_roster_id: int
    resolution: Optional[PickResolution] = None


# ---------- Trades ----------

class TradePlayerAsset(BaseModel):
    player_id: str
    player_name: str
    position: str
    post_trade_points: float


class TradePickAsset(BaseModel):
    season: str
    round: int
    original_owner_roster_id: int
    drafted_player_id: Optional[str] = None
    drafted_player_name: Optional[str] = None
    drafted_player_position: Optional[str] = None
    pick_in_round: Optional[int] = None
    post_trade_points: float = 0.0
    status: Literal["resolved", "unresolved"]


class TradeSide(BaseModel):
    roster_id: int
    user_id: Optional[str] = None
    display_name: str
    assets_received: List[TradePlayerAsset] = []
    picks_received: List[TradePickAsset] = []
    assets_sent: List[TradePlayerAsset] = []
    picks_sent: List[TradePickAsset] = []
    total_value_received: float
    total_value_sent: float
    net_value: float


class AnalyzedTrade(BaseModel):
    transaction_id: str
    season: str
    league_id: str
    week: int
    timestamp: int
    sides: List[TradeSide]
    has_unresolved: bool


class TradeResult(BaseModel):
    trade: AnalyzedTrade
    net_value: float


class TradePartner(BaseModel):
    user_id: str
    display_name: str
    count: int


class ManagerTradeSummary(BaseModel):
    user_id: str
    display_name: str
    avatar: Optional[str] = None
    total_net_value: float
    trade_win_rate: Optional[float] = None
    resolved_trades: int
    total_trades: int
    avg_value_per_trade: float
    biggest_win: Optional[TradeResult] = None
    biggest_loss: Optional[TradeResult] = None
    most_frequent_partner: Optional[TradePartner] = None
    grade: Grade
    net_value_percentile: float
    league_rank: int
    trades: List[AnalyzedTrade]


class LeagueTradeRecord(BaseModel):
    user_id: str
    display_name: str
    trade: AnalyzedTrade
    net_value: float


class LeagueTradeAnalysis(BaseModel):
    manager_summaries: Dict[str, ManagerTradeSummary] = {}
    all_trades: List[AnalyzedTrade] = []
    biggest_win_all_time: Optional[LeagueTradeRecord] = None
    biggest_loss_all_time: Optional[LeagueTradeRecord] = None
    most_active_trader: Optional[TradePartner] = None
    has_data: bool = False


# ---------- Cross-season trajectory ----------

class TrajectoryPoint(BaseModel):
    season: str
    week: int
    all_time_index: int
    cumulative_war: float
    rolling_war: float


class ManagerTrajectory(BaseModel):
    user_id: str
    display_name: str
    avatar: Optional[str] = None
    points: List[TrajectoryPoint]
    current_war: float
    recent_form: float
    year_over_year_change: Optional[float] = None


class SeasonBoundary(BaseModel):
    season: str
    start_index: int


class LeagueTrajectoryAnalysis(BaseModel):
    manager_data: Dict[str, ManagerTrajectory] = {}
    season_boundaries: List[SeasonBoundary] = []
    has_data: bool = False


# ---------- Franchise outlook ----------

class ProjectedYear(BaseModel):
    year_offset: int
    total_war: float


class KeyPlayer(BaseModel):
    player_id: str
    name: str
    position: str
    age: Optional[int] = None
    war: float


class YoungAsset(BaseModel):
    player_id: str
    name: str
    position: str
    age: int
    war: float
    upside_ratio: float


class PositionWAR(BaseModel):
    position: str
    war: float
    league_avg_war: float
    rank: int
    avg_age: float


class FocusArea(BaseModel):
    signal: str
    detail: str
    severity: Literal["warning", "positive", "info"]


class StrategyRecommendation(BaseModel):
    mode: Literal["Steady State", "Push All-In Now", "Win-Now Pivot", "Asset Accumulation", "Full Rebuild"]
    headline: str
    rationale: List[str]
    urgency_score: int


class FranchiseOutlook(BaseModel):
    user_id: str
    roster_id: int
    current_war: float
    weighted_age: float
    age_category: Literal["Young", "Prime", "Aging"]
    league_age_percentile: int
    projected_war: List[ProjectedYear]
    contender_threshold: float
    league_median_war: float
    window_length: int
    currently_contender: bool
    peak_year_offset: int
    peak_war: float
    risk_score: int
    risk_category: Literal["Low", "Moderate", "High", "Extreme"]
    tier: FranchiseTier
    future_picks: List[TradedPick] = Field(default_factory=list)
    is_season_complete: bool
    key_players: List[KeyPlayer] = Field(default_factory=list)
    young_assets: List[YoungAsset] = Field(default_factory=list)
    war_by_position: List[PositionWAR] = Field(default_factory=list)
    wins: int = 0
    losses: int = 0
    war_rank: int
    wins_rank: int
    luck_score: int
    focus_areas: List[FocusArea] = Field(default_factory=list)
    strategy_recommendation: StrategyRecommendation


class LeagueFranchiseAnalysis(BaseModel):
    season: Optional[str] = None
    outlooks: Dict[str, FranchiseOutlook] = {}
    has_data: bool = False
