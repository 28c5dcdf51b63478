"""Tests for extraction strategies, the strategy registry and PageSource.

These tests verify that:
- Each strategy finds candidates in the markup it targets
- Strategies report their source name, confidences and selectors
- The registry orders strategies by priority and supports replacement
- PageSource exposes title, platform and readable text

Run after changes to: jobfusion/extraction/strategies/, jobfusion/source.py
"""

import pytest

from jobfusion.extraction.strategies import (
    AriaLabelsStrategy,
    BaseExtractionStrategy,
    CssSelectorsStrategy,
    JsonLdStrategy,
    MetaTagsStrategy,
    StrategyRegistry,
    StrategyResult,
    TitleParseStrategy,
    default_strategies,
)
from jobfusion.extraction.strategies.json_ld import extract_salary, format_number
from jobfusion.extraction.strategies.meta_tags import clean_meta_value
from jobfusion.extraction.strategies.title_parse import parse_title
from jobfusion.models import Candidate, Field
from jobfusion.source import PageSource, detect_platform


def page(body: str, head: str = "", url: str = "") -> PageSource:
    return PageSource(f"<html><head>{head}</head><body>{body}</body></html>", url=url)


def values(result: StrategyResult, field_name: Field) -> list[str]:
    return [c.value for c in result[field_name]]


class TestPageSource:
    """Tests for PageSource and platform detection."""

    def test_title_and_platform(self, sample_page):
        assert sample_page.title == "Senior Python Developer at Acme Corp | Careers"
        assert sample_page.platform == "greenhouse"

    @pytest.mark.parametrize("url,platform", [
        ("https://www.linkedin.com/jobs/view/123", "linkedin"),
        ("https://jobs.lever.co/acme/abc", "lever"),
        ("https://acme.wd5.myworkdayjobs.com/en-US/careers", "workday"),
        ("https://jobs.ashbyhq.com/acme/1", "ashby"),
        ("https://acme.example/careers", "other"),
        ("", "other"),
        (None, "other"),
    ])
    def test_detect_platform(self, url, platform):
        assert detect_platform(url) == platform

    def test_page_text_skips_scripts_and_prefers_main(self, sample_dirty_html):
        text = PageSource(sample_dirty_html).page_text()

        assert text == "Backend Engineer Build reliable services."

    def test_page_text_without_main_uses_body(self, sample_html_empty):
        assert PageSource(sample_html_empty).page_text() == "Nothing to see here."

    def test_missing_title(self):
        assert page("<p>x</p>").title == ""


class TestStrategyResult:
    """Tests for the StrategyResult container."""

    def test_add_ignores_blank_values(self):
        result = StrategyResult(source="css-selectors")
        result.add(Field.POSITION, "  ", 0.9)
        result.add(Field.POSITION, None, 0.9)
        result.add("position", " Data Engineer ", 0.9, "h1")

        assert result.total == 1
        assert result[Field.POSITION][0] == Candidate("Data Engineer", "css-selectors", 0.9, "h1")

    def test_from_dict(self):
        result = StrategyResult.from_dict({
            "salary": [{"value": "$90k", "confidence": 0.6}, "ignored"],
            "metadata": {"source": "plugin", "confidence": 0.5, "timing": 2.0, "note": "x"},
        })

        assert result.source == "plugin"
        assert result.confidence == 0.5
        assert result.timing == 2.0
        assert result.extras == {"note": "x"}
        assert values(result, Field.SALARY) == ["$90k"]
        assert result[Field.SALARY][0].source == "plugin"

    def test_from_dict_without_metadata(self):
        result = StrategyResult.from_dict({"company": [{"value": "Acme"}]})

        assert result.source == "unknown"
        assert result[Field.COMPANY][0].confidence == 0.0

    def test_from_dict_skips_malformed_candidates(self):
        result = StrategyResult.from_dict({
            "position": [
                {"value": "Engineer", "confidence": "high"},
                {"value": {"text": "Engineer"}},
                {"value": "Data Engineer", "confidence": 0.7},
            ],
            "company": "Acme",
            "metadata": {"source": "plugin", "confidence": "n/a", "timing": None},
        })

        assert values(result, Field.POSITION) == ["Data Engineer"]
        assert result[Field.COMPANY] == []
        assert result.confidence == 0.0
        assert result.timing == 0.0

    def test_drop_malformed(self):
        result = StrategyResult(source="plugin")
        result.add(Field.POSITION, "Data Engineer", 0.8)
        result.candidates[Field.POSITION].append(Candidate(42, "plugin", 0.9))
        result.candidates[Field.COMPANY].append(Candidate("Globex", "plugin", "high"))
        result.candidates[Field.LOCATION] = "Berlin"

        assert result.drop_malformed() == 2
        assert values(result, Field.POSITION) == ["Data Engineer"]
        assert result[Field.COMPANY] == []
        assert result[Field.LOCATION] == []


class TestJsonLdStrategy:
    """Tests for JSON-LD and microdata extraction."""

    def test_sample_posting(self, sample_page, long_description):
        strategy = JsonLdStrategy()

        assert strategy.is_applicable(sample_page)
        result = strategy.extract(sample_page)

        assert result.source == "json-ld"
        assert values(result, Field.POSITION) == ["Senior Python Developer"]
        assert values(result, Field.COMPANY) == ["Acme Corp"]
        assert values(result, Field.LOCATION) == ["Berlin, DE"]
        assert values(result, Field.SALARY) == ["EUR 70,000 - 90,000 YEAR"]
        assert result[Field.SALARY][0].confidence == pytest.approx(0.95)
        assert values(result, Field.JOB_DESCRIPTION) == [long_description]
        assert result.timing >= 0

    def test_graph_and_string_organization(self):
        script = """
        <script type="application/ld+json">
        {"@graph": [
            {"@type": "Organization", "name": "Ignored"},
            {"@type": ["JobPosting"], "title": "QA Engineer", "hiringOrganization": "Globex",
             "jobLocation": [{"address": "Austin, TX"}, {"name": "Remote"}]}
        ]}
        </script>
        """
        result = JsonLdStrategy().extract(page("", head=script))

        assert values(result, Field.POSITION) == ["QA Engineer"]
        assert values(result, Field.COMPANY) == ["Globex"]
        assert values(result, Field.LOCATION) == ["Austin, TX, Remote"]

    def test_invalid_json_is_skipped(self):
        head = (
            '<script type="application/ld+json">{not json</script>'
            '<script type="application/ld+json">[{"@type": "JobPosting", "title": "Data Engineer"}]</script>'
        )

        result = JsonLdStrategy().extract(page("", head=head))

        assert values(result, Field.POSITION) == ["Data Engineer"]

    def test_microdata(self):
        body = """
        <div itemscope itemtype="https://schema.org/JobPosting">
            <h1 itemprop="title">QA Engineer</h1>
            <div itemprop="hiringOrganization" itemscope><span itemprop="name">Initech</span></div>
            <div itemprop="jobLocation"><span itemprop="addressLocality">Austin</span></div>
        </div>
        """
        source = page(body)
        strategy = JsonLdStrategy()

        assert strategy.is_applicable(source)
        result = strategy.extract(source)

        assert values(result, Field.POSITION) == ["QA Engineer"]
        assert values(result, Field.COMPANY) == ["Initech"]
        assert values(result, Field.LOCATION) == ["Austin"]
        assert result[Field.POSITION][0].confidence == pytest.approx(0.9)

    def test_not_applicable_without_structured_data(self, sample_html_empty):
        assert not JsonLdStrategy().is_applicable(PageSource(sample_html_empty))

    @pytest.mark.parametrize("job,expected", [
        ({"baseSalary": "$100k - $120k"}, "$100k - $120k"),
        ({"baseSalary": {"currency": "USD", "value": 120000}}, "USD 120,000"),
        ({"baseSalary": {"currency": "GBP", "value": 50000, "unitText": "YEAR"}}, "GBP 50,000 YEAR"),
        ({"baseSalary": {"value": {"value": 45.5, "unitText": "HOUR"}}}, "USD 45.5 HOUR"),
        ({"baseSalary": {"currency": "EUR", "minValue": 50000}}, "EUR 50,000+"),
        ({"estimatedSalary": {"currency": "USD", "maxValue": 80000}}, "Up to USD 80,000"),
        ({"baseSalary": {"currency": "USD"}}, None),
        ({}, None),
    ])
    def test_extract_salary(self, job, expected):
        assert extract_salary(job) == expected

    def test_format_number(self):
        assert format_number(1234.5) == "1,234.5"
        assert format_number("70000") == "70,000"
        assert format_number("competitive") == "competitive"


class TestMetaTagsStrategy:
    """Tests for meta tag and data attribute extraction."""

    def test_sample_posting(self, sample_page):
        strategy = MetaTagsStrategy()

        assert strategy.is_applicable(sample_page)
        result = strategy.extract(sample_page)

        assert values(result, Field.POSITION) == ["Senior Python Developer"]
        assert result[Field.POSITION][0].confidence == 0.80
        assert result[Field.POSITION][0].selector == 'meta[property="og:title"]'
        assert values(result, Field.COMPANY) == ["Acme Corp"]
        assert values(result, Field.JOB_DESCRIPTION) == [
            "Join Acme Corp as a Senior Python Developer in Berlin."
        ]
        assert result.extras["canonical_url"] == "https://acme.example/jobs/42"

    def test_data_attributes_and_placeholders(self):
        source = PageSource(
            '<html><head><meta property="og:title" content="undefined"></head>'
            '<body data-company="Globex" data-location="Austin, TX"></body></html>'
        )

        result = MetaTagsStrategy().extract(source)

        assert values(result, Field.POSITION) == []
        assert values(result, Field.COMPANY) == ["Globex"]
        assert result[Field.COMPANY][0].confidence == pytest.approx(0.72)
        assert values(result, Field.LOCATION) == ["Austin, TX"]

    @pytest.mark.parametrize("raw,expected", [
        ("Data Engineer | Globex", "Data Engineer"),
        ("Job: Data Engineer at Globex", "Data Engineer"),
        ("R&amp;D Lead", "R&D Lead"),
    ])
    def test_clean_position(self, raw, expected):
        assert clean_meta_value(raw, Field.POSITION) == expected

    def test_company_is_not_trimmed(self):
        assert clean_meta_value("Smith - Jones", Field.COMPANY) == "Smith - Jones"


class TestCssSelectorsStrategy:
    """Tests for heuristic CSS selector extraction."""

    def test_sample_posting(self, sample_page):
        result = CssSelectorsStrategy().extract(sample_page)

        position = result[Field.POSITION][0]
        assert position.value == "Senior Python Developer"
        assert position.selector == ".job-title"
        assert position.confidence == pytest.approx(0.665)
        assert values(result, Field.COMPANY)[0] == "Acme Corp"
        assert "Berlin, Germany" in values(result, Field.LOCATION)
        assert values(result, Field.SALARY) == []

    def test_lower_tiers_used_only_as_fallback(self):
        result = CssSelectorsStrategy().extract(page("<h1>Data Engineer</h1><h2>Perks</h2>"))

        assert values(result, Field.POSITION) == ["Data Engineer"]
        assert result[Field.POSITION][0].confidence == pytest.approx(0.455)

    def test_navigation_text_skipped(self):
        result = CssSelectorsStrategy().extract(page("<h1>Apply</h1>"))

        assert values(result, Field.POSITION) == []

    def test_platform_selectors(self):
        body = '<div class="jobs-unified-top-card__job-title"><h1>Data Engineer</h1></div>'
        source = page(body, url="https://www.linkedin.com/jobs/view/1")

        result = CssSelectorsStrategy().extract(source)

        selectors = [c.selector for c in result[Field.POSITION]]
        assert ".jobs-unified-top-card__job-title h1" in selectors


class TestAriaLabelsStrategy:
    """Tests for accessibility attribute extraction."""

    def test_labelled_elements(self):
        body = """
        <div aria-label="Job title">Data Engineer</div>
        <span aria-label="Company name">Globex</span>
        <span id="loc-label">Work location</span>
        <span aria-labelledby="loc-label">Austin, TX</span>
        """
        source = page(body)
        strategy = AriaLabelsStrategy()

        assert strategy.is_applicable(source)
        result = strategy.extract(source)

        assert values(result, Field.POSITION) == ["Data Engineer"]
        assert result[Field.POSITION][0].confidence == 0.85
        assert values(result, Field.COMPANY) == ["Globex"]
        assert values(result, Field.LOCATION) == ["Austin, TX"]
        assert result[Field.LOCATION][0].confidence == pytest.approx(0.8075)

    def test_main_landmark_heading(self):
        body = '<div role="main"><h1>Senior Data Engineer</h1><a href="/company/globex">Globex</a></div>'

        result = AriaLabelsStrategy().extract(page(body))

        assert values(result, Field.POSITION) == ["Senior Data Engineer"]
        assert result[Field.POSITION][0].confidence == pytest.approx(0.595)
        assert values(result, Field.COMPANY) == ["Globex"]

    def test_main_heading_must_look_like_title(self):
        body = '<div role="main"><h1>Welcome home</h1></div>'

        result = AriaLabelsStrategy().extract(page(body))

        assert values(result, Field.POSITION) == []

    def test_not_applicable_without_aria(self, sample_page):
        assert not AriaLabelsStrategy().is_applicable(sample_page)


class TestTitleParseStrategy:
    """Tests for document title parsing."""

    def test_at_sign(self):
        parsed = parse_title("Staff Engineer @ Acme - Careers")

        assert parsed.position == "Staff Engineer"
        assert parsed.company == "Acme"
        assert parsed.position_confidence == 0.95

    def test_at_word(self):
        parsed = parse_title("Senior Developer at Globex")

        assert (parsed.position, parsed.company) == ("Senior Developer", "Globex")
        assert parsed.company_confidence == 0.90

    def test_separated_parts(self):
        parsed = parse_title("Data Analyst | Initech | Austin, TX")

        assert parsed.position == "Data Analyst"
        assert parsed.company == "Initech"
        assert parsed.location == "Austin, TX"
        assert parsed.location_confidence == 0.75

    def test_whole_title(self):
        parsed = parse_title("Senior Backend Engineer")

        assert parsed.position == "Senior Backend Engineer"
        assert parsed.company is None
        assert parsed.position_confidence == 0.60

    def test_strategy_on_sample_page(self, sample_page):
        strategy = TitleParseStrategy()

        assert strategy.is_applicable(sample_page)
        result = strategy.extract(sample_page)

        assert values(result, Field.POSITION) == ["Senior Python Developer"]
        assert values(result, Field.COMPANY) == ["Acme Corp"]
        assert result[Field.COMPANY][0].confidence == pytest.approx(0.45)
        assert result[Field.COMPANY][0].selector == "title"

    def test_not_applicable_without_job_words(self, sample_html_empty):
        assert not TitleParseStrategy().is_applicable(PageSource(sample_html_empty))


class TestStrategyRegistry:
    """Tests for StrategyRegistry."""

    def test_defaults_in_priority_order(self):
        names = [s.name for s in StrategyRegistry().all()]

        assert names == ["json-ld", "aria-labels", "meta-tags", "css-selectors", "title-parse"]
        assert [s.name for s in default_strategies()] == names

    def test_register_replaces_same_name(self):
        class CustomJsonLd(JsonLdStrategy):
            pass

        registry = StrategyRegistry()
        custom = CustomJsonLd()
        registry.register(custom)

        assert len(registry) == 5
        assert registry.get("json-ld") is custom

    def test_register_and_unregister(self):
        class RegexStrategy(BaseExtractionStrategy):
            name = "regex"
            priority = 9

            def _collect(self, source, result):
                result.add(Field.SALARY, "$90k", 0.4)

        registry = StrategyRegistry(register_defaults=False)
        registry.register(RegexStrategy())

        assert "regex" in registry
        assert registry.all()[0].extract(page("")).total == 1

        registry.unregister("regex")
        registry.unregister("missing")

        assert len(registry) == 0
        assert registry.get("regex") is None
