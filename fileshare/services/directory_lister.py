import os
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import List, Tuple
from urllib.parse import quote

from fileshare import config

PAGE_CSS = """
body { font-family: Arial, sans-serif; background-color: #f0f0f0; margin: 0; padding: 0; }
.container { max-width: 800px; margin: 50px auto; background: #fff; padding: 20px; border-radius: 8px; box-shadow: 0 0 10px rgba(0,0,0,0.1); }
h1 { color: #333; }
form { margin-bottom: 20px; }
input[type='file'] { padding: 10px; border: 1px solid #ccc; border-radius: 4px; }
input[type='submit'] { background-color: #007ACC; color: #fff; border: none; padding: 10px 20px; border-radius: 4px; cursor: pointer; }
ul { list-style: none; padding: 0; }
ul li { margin-bottom: 8px; }
ul li a { text-decoration: none; color: #007ACC; }
ul li a:hover { text-decoration: underline; }
#uploadProgress { display: none; width: 100%; margin-top: 10px; }
#dropZone { border: 2px dashed #007ACC; padding: 20px; text-align: center; margin-bottom: 20px; }
.footer { text-align: center; font-size: 0.8em; color: #777; margin-top: 30px; }
"""

# Uploads through XHR so the progress bar can follow, for both the form and drops
PAGE_SCRIPT = """
var form = document.getElementById('uploadForm');
var progress = document.getElementById('uploadProgress');
var dropZone = document.getElementById('dropZone');
function sendFile(file) {
  var data = new FormData();
  data.append('file', file);
  var xhr = new XMLHttpRequest();
  xhr.open('POST', form.action, true);
  xhr.upload.addEventListener('progress', function(e) {
    if (e.lengthComputable) { progress.value = Math.round((e.loaded / e.total) * 100); }
  });
  xhr.onloadstart = function() { progress.style.display = 'block'; };
  xhr.onloadend = function() {
    progress.style.display = 'none';
    if (xhr.status === 200) { alert('Upload complete!'); window.location.reload(); }
    else { alert('Upload failed: ' + xhr.responseText); }
  };
  xhr.send(data);
}
form.addEventListener('submit', function(e) {
  e.preventDefault();
  var input = form.querySelector('input[type="file"]');
  if (!input.files.length) { alert('Please select a file.'); return; }
  sendFile(input.files[0]);
});
dropZone.addEventListener('dragover', function(e) { e.preventDefault(); dropZone.style.backgroundColor = '#e0e0e0'; });
dropZone.addEventListener('dragleave', function(e) { e.preventDefault(); dropZone.style.backgroundColor = ''; });
dropZone.addEventListener('drop', function(e) {
  e.preventDefault();
  dropZone.style.backgroundColor = '';
  if (e.dataTransfer.files.length) { sendFile(e.dataTransfer.files[0]); }
});
"""


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_directory: bool


def split_segments(relative_dir: str) -> List[str]:
    return [s for s in relative_dir.replace("\\", "/").split("/") if s and s != "."]


def build_href(segments: List[str]) -> str:
    """Absolute URL path made of individually percent-encoded segments."""
    return "/" + "/".join(quote(s, safe="") for s in segments)


def list_entries(directory: Path) -> Tuple[List[DirectoryEntry], List[DirectoryEntry]]:
    """Direct children of a directory, split into (directories, files).

    Each group is sorted by code point, so uppercase names come first.
    Entries that are neither directories nor regular files are skipped.
    """
    directories = []
    files = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.is_dir():
                directories.append(DirectoryEntry(entry.name, True))
            elif entry.is_file():
                files.append(DirectoryEntry(entry.name, False))
    directories.sort(key=lambda e: e.name)
    files.sort(key=lambda e: e.name)
    return directories, files


def render(directory: Path, relative_dir: str) -> str:
    """Render the HTML listing of ``directory``.

    ``relative_dir`` is the directory's path relative to the served root
    (empty for the root itself); it is used for links, the page title and
    the upload form target.
    """
    segments = split_segments(relative_dir)
    directories, files = list_entries(directory)

    items = []
    if segments:
        items.append(f"<li><a href='{build_href(segments[:-1])}'>.. [&#8617; parent]</a></li>")
    for entry in directories:
        href = build_href(segments + [entry.name])
        items.append(f"<li>&#128193; <a href='{href}'>{escape(entry.name)}/</a></li>")
    for entry in files:
        href = build_href(segments + [entry.name])
        items.append(f"<li>&#128462; <a href='{href}'>{escape(entry.name)}</a></li>")

    label = "/" + "/".join(segments)
    upload_target = "/upload?dir=" + quote("/".join(segments), safe="")
    listing = "\n".join(f"      {item}" for item in items)

    return f"""<!DOCTYPE html>
<html lang='en'>
<head>
  <meta charset='UTF-8'>
  <meta name='viewport' content='width=device-width, initial-scale=1.0'>
  <title>Files in {escape(label)}</title>
  <style>{PAGE_CSS}</style>
</head>
<body>
  <div class='container'>
    <h1>Upload File</h1>
    <form id='uploadForm' method='POST' action='{upload_target}' enctype='multipart/form-data'>
      <input type='file' name='file'/>
      <input type='submit' value='Upload'/>
      <progress id='uploadProgress' value='0' max='100'></progress>
    </form>
    <div id='dropZone'>Drag &amp; drop files here to upload</div>
    <h1>Files in {escape(label)}</h1>
    <ul>
{listing}
    </ul>
    <div class='footer'>Version v{config.VERSION}</div>
  </div>
  <script>{PAGE_SCRIPT}</script>
</body>
</html>"""
