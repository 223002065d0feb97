"""SaaS metrics dashboard service."""
