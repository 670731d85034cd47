"""
Tests for the local heuristic scorer and revenue extraction.
"""

import pytest

from dealscout.tools.scoring import (
    DEFAULT_INDUSTRY,
    deal_quality,
    detect_industry,
    detect_risks,
    extract_revenue,
    parse_revenue_string,
    quality_tier,
    score_post,
)


class TestExtractRevenue:
    def test_k_suffix_mrr_is_annualized(self):
        revenue = extract_revenue("we do $5k mrr")
        assert revenue.display == "$5,000 MRR"
        assert revenue.annualized == 60000
        assert revenue.revenue_type == "MRR"

    def test_small_bare_figure_means_thousands(self):
        assert extract_revenue("about 8 mrr").annualized == 96000

    def test_plain_mrr(self):
        assert extract_revenue("$500 MRR").annualized == 6000

    def test_arr(self):
        revenue = extract_revenue("$120k ARR and growing")
        assert revenue.annualized == 120000
        assert revenue.revenue_type == "ARR"

    def test_annual_revenue(self):
        revenue = extract_revenue("revenue: $250,000 last year")
        assert revenue.display == "$250,000/year"
        assert revenue.revenue_type == "Annual"

    def test_no_revenue(self):
        revenue = extract_revenue("just a side project")
        assert revenue.display == "Not mentioned"
        assert revenue.annualized == 0


class TestParseRevenueString:
    @pytest.mark.parametrize("display,expected,revenue_type", [
        ("$30k MRR", 360000, "MRR"),
        ("$1.2M/year", 1200000, "Annual"),
        ("$400k ARR", 400000, "ARR"),
        ("Not mentioned", 0, "Unknown"),
    ])
    def test_annualizes_free_form_strings(self, display, expected, revenue_type):
        revenue = parse_revenue_string(display)
        assert revenue.annualized == pytest.approx(expected)
        assert revenue.revenue_type == revenue_type

    def test_none(self):
        assert parse_revenue_string(None).annualized == 0


class TestScorePost:
    def test_motivated_saas_seller(self):
        record = score_post(
            "Selling my SaaS - $5k MRR",
            "Profitable and 3 years old. I'm burned out.",
        )
        assert record.origin == "heuristic"
        assert record.viability_score == 85
        assert record.motivation_score == 65
        assert record.deal_quality == 77
        assert record.industry == "SaaS"
        assert record.estimated_revenue_annualized == 60000
        assert record.valuation_min == 180000
        assert record.valuation_max == 300000
        assert record.seller_signals == ["Owner is selling or planning an exit", "Owner burnout"]
        assert record.summary.startswith("Promising SaaS opportunity with $5,000 MRR.")

    def test_scores_capped_at_100(self):
        text = (
            "Selling, for sale, burned out, moving on, what is my business worth? "
            "$10k MRR recurring revenue, profitable, 5 years old, team of 4, growing"
        )
        record = score_post(text, text)
        assert record.viability_score == 100
        assert record.motivation_score == 100
        assert record.deal_quality == 100

    def test_empty_post(self):
        record = score_post("", None)
        assert record.viability_score == 0
        assert record.motivation_score == 0
        assert record.deal_quality == 0
        assert record.industry == DEFAULT_INDUSTRY.name
        assert record.estimated_revenue_display == "Not mentioned"
        assert record.valuation_min == record.valuation_max == 0
        assert "revenue not disclosed" in record.summary

    def test_no_valuation_without_revenue(self):
        record = score_post("Selling my shopify store", "It makes money")
        assert record.industry == "E-commerce"
        assert record.valuation_min == 0
        assert record.valuation_max == 0

    def test_quality_is_weighted_blend(self):
        assert deal_quality(50, 100) == 70
        assert deal_quality(0, 0) == 0


class TestClassifiers:
    def test_first_industry_pattern_wins(self):
        assert detect_industry("saas agency").name == "SaaS"
        assert detect_industry("a plain shop").name == "Other"

    def test_risks(self):
        risks = detect_risks("most traffic is seo driven and one customer pays the bills")
        assert risks == ["SEO-dependent traffic", "Customer concentration risk"]

    @pytest.mark.parametrize("quality,tier", [(70, "promising"), (50, "potential"), (49, "early-stage")])
    def test_quality_tier(self, quality, tier):
        assert quality_tier(quality) == tier
