"""Blocky Math Champ: adaptive math practice with mastery tracking."""
