"""
VOC Records.
Converts PASCAL-VOC annotated image folders into record files
ready for object detection training.
"""

__version__ = "0.1.0"
