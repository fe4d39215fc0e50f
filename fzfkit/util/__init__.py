"""Text buffers, thread coordination, scratch arrays, width helpers and shell commands."""