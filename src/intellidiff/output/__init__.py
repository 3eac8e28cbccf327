"""Output renderers: JSON model dump and Rich file listing."""
