"""HTTP service exposing the live tracker and recorded history."""
