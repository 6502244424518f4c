"""Configuration-independent helpers: errors, signing, env parsing."""
