"""Application entry points for scoring, forecasting and scenarios."""
