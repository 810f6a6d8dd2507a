"""Minutes generation -- transcript formatting, prompts, transformation, service.

MinutesGenerationService validates the input, formats the transcript,
asks StructuredOutputClient for schema-valid minutes, and hands the result
to MinutesTransformer for ID assignment, duration and confidence scoring.
"""
