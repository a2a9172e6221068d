"""LearnHub course progress and certificate API."""
