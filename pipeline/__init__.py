"""Pipeline orchestration: option merging, pass ordering and impact accounting."""
