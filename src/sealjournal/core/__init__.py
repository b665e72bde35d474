"""Core building blocks: exceptions, config, logging, sealed storage."""
