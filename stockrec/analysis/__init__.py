from .models import (
    AnalystRatings,
    CategoryScore,
    FundamentalMetrics,
    InsiderSentiment,
    NewsSentiment,
    PortfolioPosition,
    ScoreComponent,
    ScoreInputs,
    TechnicalIndicators,
)
from .fundamental import FundamentalScorer
from .technical import TechnicalScorer
from .analyst import AnalystScorer
from .sentiment import NewsScorer, InsiderScorer
from .portfolio import PortfolioScorer
from .target import TargetResolution, resolve_target
from .scoring import CompositeScorer
from .conviction import ConvictionEngine, ConvictionResult
from .dip import DipEngine, DipResult
from .signals import SignalGenerator, SignalType, StockSignal
from .strategy import BuyStrategy, ExitStrategy, StrategyPlanner
from .recommendation import (
    RecommendationEngine,
    StockRecommendation,
    generate_all_recommendations,
    generate_recommendation,
)
from .indicators import compute_indicators
from .thresholds import DEFAULT_CONFIG, EngineConfig, load_engine_config
