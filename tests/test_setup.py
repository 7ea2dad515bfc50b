"""Test that the project setup is working correctly."""

import polymarket_analytics


def test_version() -> None:
    """Test that version is defined."""
    assert polymarket_analytics.__version__ == "0.1.0"


def test_import_modules() -> None:
    """Test that all submodules can be imported."""
    from polymarket_analytics import consistency
    from polymarket_analytics import market
    from polymarket_analytics import portfolio
    from polymarket_analytics import traders
    from polymarket_analytics import trades

    # Just verify imports work
    assert market is not None
    assert trades is not None
    assert portfolio is not None
    assert consistency is not None
    assert traders is not None
