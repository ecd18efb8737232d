"""Deployment submission helpers: version ids, parameter templates, completion listener."""
