"""Pytest configuration and fixtures."""

import pytest

from jobfusion.source import PageSource


# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]


LONG_DESCRIPTION = (
    "About the role: we are looking for a Senior Python Developer to build and run "
    "the services behind our logistics platform. You will design APIs, review code "
    "and mentor other engineers. Requirements: 5+ years of Python, experience with "
    "PostgreSQL and asynchronous programming."
)


@pytest.fixture
def long_description():
    """Description text long enough to pass validation."""
    return LONG_DESCRIPTION


@pytest.fixture
def sample_job_posting_html():
    """Job posting page with JSON-LD, Open Graph tags and job-ish class names."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Senior Python Developer at Acme Corp | Careers</title>
        <meta property="og:title" content="Senior Python Developer">
        <meta property="og:site_name" content="Acme Corp">
        <meta name="description" content="Join Acme Corp as a Senior Python Developer in Berlin.">
        <link rel="canonical" href="https://acme.example/jobs/42">
        <script type="application/ld+json">
        {{
            "@context": "https://schema.org",
            "@type": "JobPosting",
            "title": "Senior Python Developer",
            "hiringOrganization": {{"@type": "Organization", "name": "Acme Corp"}},
            "jobLocation": {{
                "@type": "Place",
                "address": {{
                    "@type": "PostalAddress",
                    "addressLocality": "Berlin",
                    "addressCountry": "DE"
                }}
            }},
            "baseSalary": {{
                "@type": "MonetaryAmount",
                "currency": "EUR",
                "value": {{
                    "@type": "QuantitativeValue",
                    "minValue": 70000,
                    "maxValue": 90000,
                    "unitText": "YEAR"
                }}
            }},
            "description": "<p>{LONG_DESCRIPTION}</p>"
        }}
        </script>
    </head>
    <body>
        <main>
            <h1 class="job-title">Senior Python Developer</h1>
            <div class="company-name">Acme Corp</div>
            <div class="job-location">Berlin, Germany</div>
            <div class="job-description"><p>{LONG_DESCRIPTION}</p></div>
        </main>
    </body>
    </html>
    """


@pytest.fixture
def sample_html_empty():
    """Page without any job information."""
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Welcome</title></head>
    <body><p>Nothing to see here.</p></body>
    </html>
    """


@pytest.fixture
def sample_page(sample_job_posting_html):
    """PageSource over the sample posting, hosted on Greenhouse."""
    return PageSource(sample_job_posting_html, url="https://boards.greenhouse.io/acme/jobs/42")


@pytest.fixture
def long_text_page():
    """Page whose main text is well over the LLM truncation length."""
    body = "word " * 3000
    return PageSource(f"<html><body><main><p>{body}</p></main></body></html>")


@pytest.fixture
def sample_dirty_html():
    """Page with scripts, styles and markup around the main content."""
    return """
    <html>
    <head>
        <title>Backend Engineer - Globex</title>
        <style>.x { color: red; }</style>
    </head>
    <body>
        <nav>Home Jobs About</nav>
        <main>
            <script>console.log("tracking");</script>
            <h1>Backend Engineer</h1>
            <p>Build   reliable
               services.</p>
        </main>
        <footer>Copyright Globex</footer>
    </body>
    </html>
    """
