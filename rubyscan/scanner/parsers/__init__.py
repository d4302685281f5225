"""Readers for gemspecs, Gemfiles, Gemfile.lock and packed gem metadata."""
