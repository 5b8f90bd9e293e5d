"""Tests for news/insider scorers and their aggregation helpers."""

from datetime import date

import pytest

from stockrec.analysis.models import InsiderSentiment, NewsSentiment, ScoreInputs
from stockrec.analysis.sentiment import InsiderScorer, NewsScorer


class TestNewsScorer:

    def setup_method(self):
        self.scorer = NewsScorer()

    def test_absent_is_neutral(self):
        assert self.scorer.score(ScoreInputs(ticker="T")).score == 50.0

    def test_zero_articles_is_neutral(self):
        news = NewsSentiment(average_sentiment=0.9, article_count=0)
        assert self.scorer.score(ScoreInputs(ticker="T", news=news)).score == 50.0

    @pytest.mark.parametrize("avg, expected", [(-1.0, 0.0), (-0.4, 30.0), (0.0, 50.0), (0.3, 65.0), (1.0, 100.0)])
    def test_linear_mapping(self, avg, expected):
        news = NewsSentiment(average_sentiment=avg, article_count=5)
        assert self.scorer.score(ScoreInputs(ticker="T", news=news)).score == pytest.approx(expected)


class TestNewsFromArticles:

    def test_matches_primary_and_related_tickers(self):
        articles = [
            {"ticker": "AAPL", "sentiment": 0.6},
            {"ticker": "MSFT", "related_tickers": ["AAPL"], "sentiment": 0.0},
            {"ticker": "MSFT", "sentiment": -0.9},
            {"ticker": "AAPL"},
        ]
        news = NewsSentiment.from_articles("AAPL", articles)
        assert news.article_count == 3
        assert news.average_sentiment == pytest.approx(0.2)

    def test_no_matching_articles(self):
        news = NewsSentiment.from_articles("AAPL", [{"ticker": "MSFT", "sentiment": 0.5}])
        assert news.article_count == 0
        assert news.average_sentiment is None


class TestInsiderScorer:

    def setup_method(self):
        self.scorer = InsiderScorer()

    def test_absent_is_neutral(self):
        assert self.scorer.score(ScoreInputs(ticker="T")).score == 50.0

    def test_missing_mspr_is_neutral(self):
        assert self.scorer.score(ScoreInputs(ticker="T", insider=InsiderSentiment())).score == 50.0

    @pytest.mark.parametrize("mspr, expected", [(-100, 0), (-40, 30), (20, 60), (100, 100)])
    def test_half_mspr_offset(self, mspr, expected):
        result = self.scorer.score(ScoreInputs(ticker="T", insider=InsiderSentiment(mspr=mspr)))
        assert result.score == expected

    def test_detail_mentions_net_shares(self, insider_buying):
        result = self.scorer.score(ScoreInputs(ticker="T", insider=insider_buying))
        assert "bought" in result.details[0]


class TestInsiderFromMonthly:

    ROWS = [
        {"year": 2024, "month": 6, "mspr": 20, "change": 100},
        {"year": 2024, "month": 5, "mspr": 40, "change": 200},
        {"year": 2024, "month": 4, "mspr": 60, "change": -50},
        {"year": 2024, "month": 1, "mspr": -100, "change": -1000},
    ]

    def test_three_month_window(self):
        insider = InsiderSentiment.from_monthly(self.ROWS, months=3, today=date(2024, 6, 15))
        assert insider.mspr == 40.0
        assert insider.change == 250
        assert insider.months == 3

    def test_one_month_window(self):
        insider = InsiderSentiment.from_monthly(self.ROWS, months=1, today=date(2024, 6, 15))
        assert insider.mspr == 20.0

    def test_six_month_window_reaches_january(self):
        insider = InsiderSentiment.from_monthly(self.ROWS, months=6, today=date(2024, 6, 15))
        assert insider.mspr == pytest.approx(5.0)

    def test_stale_rows_fall_back_to_first_rows(self):
        insider = InsiderSentiment.from_monthly(self.ROWS, months=3, today=date(2025, 3, 1))
        assert insider.mspr == 40.0

    def test_no_rows(self):
        assert InsiderSentiment.from_monthly([], months=12).mspr is None

    def test_rejects_unknown_window(self):
        with pytest.raises(ValueError):
            InsiderSentiment.from_monthly(self.ROWS, months=4)
