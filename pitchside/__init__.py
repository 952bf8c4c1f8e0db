"""
Pitchside: fixture scheduling and match outcome modelling for football leagues.

Core modules:
- scheduling: Double round-robin (Berger table) schedules and calendar dates
- models: Poisson goal model and Elo ratings
- prediction: Season fallback chain and prediction service
- data: Database schema, repositories and ETL pipeline
- scraping: Results and odds downloads from football-data.co.uk
- workers: Fixture generation, Elo replay and prediction jobs
"""

__version__ = "0.1.0"
