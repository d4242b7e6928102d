import argparse
import io
import json
import sys
from typing import Any, Dict, Optional, Sequence, TextIO

__version__ = "0.1.0"


class OutputError(Exception):
    pass


class ImageName:
    __slots__ = ("_repository", "_tag")

    def __init__(self, repository: str, tag: Optional[str] = None):
        self._repository = repository
        self._tag = tag

    @classmethod
    def parse(cls, image: str) -> "ImageName":
        if ":" not in image:
            return cls(image)
        repository, tag = image.rsplit(":", 1)
        return cls(repository, tag)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageName":
        return cls(data["repository"], data.get("tag"))

    @property
    def repository(self) -> str:
        return self._repository

    @property
    def tag(self) -> Optional[str]:
        return self._tag

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"repository": self._repository, "tag": self._tag}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageName):
            return NotImplemented
        return (self._repository, self._tag) == (other._repository, other._tag)

    def __hash__(self) -> int:
        return hash((self._repository, self._tag))

    def __str__(self) -> str:
        # An empty tag is still a tag: "app:" must survive a re-parse
        if self._tag is None:
            return self._repository
        return f"{self._repository}:{self._tag}"

    def __repr__(self) -> str:
        return f"ImageName(repository={self._repository!r}, tag={self._tag!r})"


def parse(image: str) -> ImageName:
    return ImageName.parse(image)


def format_images(images: Sequence[ImageName], always_array: bool = False) -> str:
    if not always_array and len(images) == 1:
        content: Any = images[0].to_dict()
    else:
        content = [image.to_dict() for image in images]

    try:
        return json.dumps(content, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise OutputError(f"Unable to serialise image names: {e}") from e


def print_images(images: Sequence[ImageName], always_array: bool, writer: TextIO) -> None:
    output = format_images(images, always_array)
    try:
        writer.write(output)
        writer.flush()
    except (OSError, UnicodeEncodeError) as e:
        raise OutputError(f"Unable to write output: {e}") from e


def utf8_stdout() -> TextIO:
    # Output is always UTF-8, whatever the locale or PYTHONIOENCODING says
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8")
    return sys.stdout


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docker-image",
                                     description="Parse Docker Image names into their components")
    parser.add_argument("--version",
                        action="version",
                        version=f"%(prog)s {__version__}")
    parser.add_argument("-j", "--json",
                        action="store_true",
                        help="Output the parsed value as JSON, accepted and ignored since JSON is the only format")
    parser.add_argument("--always-array",
                        action="store_true",
                        help="Always output the results in an array, even if there is only one image name specified",
                        default=False)
    parser.add_argument("image_names",
                        metavar="IMAGE",
                        nargs="+",
                        help="Image names to parse")
    return parser


def run(argv: Optional[Sequence[str]] = None) -> None:
    args = make_parser().parse_args(argv)

    images = [parse(image) for image in args.image_names]
    try:
        print_images(images, args.always_array, utf8_stdout())
    except OutputError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
