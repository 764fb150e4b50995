"""
tasketa.analytics — Pure risk computations.  No I/O, no clock.

Import surface::

    from tasketa.analytics.estimates import to_hours
    from tasketa.analytics.risk      import evaluate_item_risk
    from tasketa.analytics.portfolio import evaluate_portfolio
"""
