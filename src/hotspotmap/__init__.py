"""HotspotMap: nearest Wi-Fi hotspot lookup and map clustering engine."""
