"""
Academy Backend: Pydantic Schemas
==================================

What:  Record, create and update models for every table, plus the HTTP
       request/response bodies.
Who:   Adapters validate inputs and parse rows with them; routes use them
       as request bodies and response models.
"""
