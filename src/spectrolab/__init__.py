"""Virtual spectrophotometry lab: Beer's law calibration of Blue #1 dye."""
