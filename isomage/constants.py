"""ISO 9660 and ext2 on-disk layout constants."""

# ISO 9660 geometry
SECTOR_SIZE = 2048
PRIMARY_VOLUME_DESCRIPTOR_SECTOR = 16
PRIMARY_VOLUME_DESCRIPTOR_OFFSET = PRIMARY_VOLUME_DESCRIPTOR_SECTOR * SECTOR_SIZE  # 32768

# Standard identifier lives at bytes 1-5 of every volume descriptor
ISO9660_IDENTIFIER = b'CD001'
ISO9660_IDENTIFIER_OFFSET = 1

# Root directory record embedded in the primary volume descriptor
ROOT_DIRECTORY_RECORD_OFFSET = 156

# Directory record layout
DIRECTORY_RECORD_HEADER_SIZE = 33
DR_LENGTH = 0
DR_EXTENT_LOCATION = 2      # u32 LE (big-endian copy follows at 6)
DR_DATA_LENGTH = 10         # u32 LE (big-endian copy follows at 14)
DR_FILE_FLAGS = 25
DR_NAME_LENGTH = 32
DR_NAME = 33

FILE_FLAG_DIRECTORY = 0x02

# Single-byte names reserved for the self and parent entries
NAME_SELF = b'\x00'
NAME_PARENT = b'\x01'
VERSION_SEPARATOR = ';'

# Walker recursion limit; deeper directories are kept but left empty
DEFAULT_MAX_DEPTH = 64
# Largest max_depth accepted; the walker uses about three stack frames per level
MAX_DEPTH_LIMIT = 256

# ext2/3/4 superblock
EXT2_SUPERBLOCK_OFFSET = 1024
EXT2_SUPERBLOCK_SIZE = 1024
EXT2_SUPER_MAGIC = 0xEF53
EXT2_MAGIC_OFFSET = 56
EXT2_LOG_BLOCK_SIZE_OFFSET = 24
EXT2_GROUP_DESC_SIZE = 32
