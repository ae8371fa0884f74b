"""Authentication of requests embedded in the helpdesk host."""
