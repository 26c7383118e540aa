"""Domain layer for bankrecon application.

Services are imported from their modules (``bankrecon.domain.suggestion``
and so on); this package does not re-export them because the database
layer imports ``bankrecon.domain.entities`` while it initialises.
"""
