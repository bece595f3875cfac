"""
Class label table for COCO-trained SSD models.

Index i is the name of class id i as reported by the model's
detection_classes output (0 is "unlabeled").
"""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Sequence

COCO_SSD_LABELS: Sequence[str] = (
    "unlabeled", "person", "bicycle", "car", "motorcycle", "airplane", "bus",
    "train", "truck", "boat", "traffic light", "fire hydrant", "street sign",
    "stop sign", "parking meter", "bench", "bird", "cat", "dog", "horse",
    "sheep", "cow", "elephant", "bear", "zebra", "giraffe", "hat", "backpack",
    "umbrella", "shoe", "eye glasses", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat",
    "baseball glove", "skateboard", "surfboard", "tennis racket", "bottle",
    "plate", "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana",
    "apple", "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza",
    "donut", "cake", "chair", "couch", "potted plant", "bed", "mirror",
    "dining table", "window", "desk", "toilet", "door", "tv", "laptop",
    "mouse", "remote", "keyboard", "cell phone", "microwave", "oven",
    "toaster", "sink", "refrigerator", "blender", "book", "clock", "vase",
    "scissors", "teddy bear", "hair drier", "toothbrush", "hair brush",
    "banner", "blanket", "branch", "bridge", "building-other", "bush",
    "cabinet", "cage", "cardboard", "carpet", "ceiling-other", "ceiling-tile",
    "cloth", "clothes", "clouds", "counter", "cupboard", "curtain",
    "desk-stuff", "dirt", "door-stuff", "fence", "floor-marble",
    "floor-other", "floor-stone", "floor-tile", "floor-wood", "flower", "fog",
    "food-other", "fruit", "furniture-other", "grass", "gravel",
    "ground-other", "hill", "house", "leaves", "light", "mat", "metal",
    "mirror-stuff", "moss", "mountain", "mud", "napkin", "net", "paper",
    "pavement", "pillow", "plant-other", "plastic", "platform",
    "playingfield", "railing", "railroad", "river", "road", "rock", "roof",
    "rug", "salad", "sand", "sea", "shelf", "sky-other", "skyscraper", "snow",
    "solid-other", "stairs", "stone", "straw", "structural-other", "table",
    "tent", "textile-other", "towel", "tree", "vegetable", "wall-brick",
    "wall-concrete", "wall-other", "wall-panel", "wall-stone", "wall-tile",
    "wall-wood", "water-other", "waterdrops", "window-blind", "window-other",
    "wood",
)


class LabelTable(Mapping[int, str]):
    """
    Read-only class id -> name mapping.

    Unknown ids resolve to the id itself as a string, so a model with more
    classes than the table still produces readable labels.
    """

    def __init__(self, labels: Mapping[int, str]):
        self._labels: Dict[int, str] = dict(labels)

    @classmethod
    def from_sequence(cls, names: Sequence[str]) -> "LabelTable":
        return cls({i: name for i, name in enumerate(names)})

    @classmethod
    def coco(cls) -> "LabelTable":
        return cls.from_sequence(COCO_SSD_LABELS)

    def name(self, class_id: int) -> str:
        return self._labels.get(class_id) or str(class_id)

    def get(self, class_id: int, default: Optional[str] = None) -> Optional[str]:
        return self._labels.get(class_id, default)

    def __getitem__(self, class_id: int) -> str:
        return self._labels[class_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)
