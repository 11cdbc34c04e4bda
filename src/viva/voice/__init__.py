"""Voice output helpers — sentence segmentation and audio chunk streaming."""
