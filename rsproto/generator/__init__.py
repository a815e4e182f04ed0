"""rsproto code generator."""

from .descriptors import convert_file as convert_file
from .descriptors import load_schema as load_schema
from .files import GeneratedFile as GeneratedFile
from .files import generate as generate
from .options import GeneratorOptions as GeneratorOptions
from .options import OptionsError as OptionsError
from .types import *
