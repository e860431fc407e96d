"""Order status emails: template rendering, SES transport and dispatch."""
