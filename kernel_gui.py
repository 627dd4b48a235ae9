#!/usr/bin/env python
"""
Kernel Explorer GUI

A Tkinter GUI to split a kernels sheet and browse the convolution of
each kernel with a slide.
"""

import os
import sys
import threading
import tkinter as tk
from tkinter import filedialog, scrolledtext, ttk

from PIL import Image, ImageTk

from core.errors import ExplorerError
from core.shapes import PRESET_SHAPES
from core.splitting import kernel_to_image
from filters.preview import PREVIEW_MAX_SIZE, build_preview
from pipeline import state as actions


# Color scheme
COLORS = {
    'bg_dark': '#1a1a2e',
    'bg_medium': '#16213e',
    'bg_light': '#0f3460',
    'accent': '#e94560',
    'accent_hover': '#ff6b6b',
    'text': '#eaeaea',
    'text_dim': '#a0a0a0',
    'success': '#4ecca3',
    'error': '#ff6b6b',
}

INPUT_THUMB_SIZE = 260
FILETYPES = [("PNG images", "*.png"), ("Image files", "*.png *.jpg *.jpeg *.bmp"),
             ("All files", "*.*")]


class TextRedirector:
    """Redirects stdout/stderr to a Tkinter text widget."""
    def __init__(self, widget, root):
        self.widget = widget
        self.root = root

    def write(self, text):
        self.root.after(0, lambda: self._write(text))

    def _write(self, text):
        self.widget.configure(state='normal')
        self.widget.insert(tk.END, text)
        self.widget.see(tk.END)
        self.widget.configure(state='disabled')

    def flush(self):
        pass


def to_photo(gray, max_size, stretch=False):
    """Grayscale array -> PhotoImage no larger than max_size."""
    pil_img = Image.fromarray(build_preview(gray, max_size, stretch=stretch))
    return ImageTk.PhotoImage(pil_img)


def run_convolutions(state):
    """
    Worker body for "Run all convolutions".

    Returns (new_state, None), or (None, error) for any failure so the
    caller can always re-enable the UI.
    """
    try:
        print(f"Running {len(state.kernels)} kernels ({state.boundary} boundary)...")
        new_state = actions.run_all_convolutions(state)
        for idx, score in enumerate(new_state.scores):
            print(f"  Kernel {idx:2d}: {score:.5f}")
    except Exception as e:
        return None, e
    return new_state, None


class KernelExplorerGUI:
    def __init__(self, root):
        self.root = root
        self.root.title("Kernel Explorer")
        self.root.geometry("1100x780")
        self.root.minsize(900, 640)
        self.root.configure(bg=COLORS['bg_dark'])

        self.state = actions.reset()
        self.shape_var = tk.IntVar(value=0)
        self.index_var = tk.IntVar(value=0)
        self.stretch_var = tk.BooleanVar(value=False)
        self.photos = {}

        self._setup_styles()
        self._build_ui()
        self._refresh()

    def _setup_styles(self):
        """Configure ttk styles."""
        style = ttk.Style()
        style.theme_use('clam')

        style.configure('Dark.TFrame', background=COLORS['bg_dark'])
        style.configure('Card.TFrame', background=COLORS['bg_medium'])

        style.configure('Action.TButton',
                        font=('Segoe UI', 11, 'bold'),
                        padding=(16, 10),
                        background=COLORS['accent'],
                        foreground='white')
        style.map('Action.TButton',
                  background=[('active', COLORS['accent_hover']),
                              ('disabled', '#555555')])

        style.configure('Secondary.TButton',
                        font=('Segoe UI', 10),
                        padding=(12, 8),
                        background=COLORS['bg_light'],
                        foreground='white')
        style.map('Secondary.TButton',
                  background=[('active', COLORS['bg_medium'])])

        style.configure('Title.TLabel',
                        font=('Segoe UI', 22, 'bold'),
                        background=COLORS['bg_dark'],
                        foreground=COLORS['text'])

        style.configure('Subtitle.TLabel',
                        font=('Segoe UI', 11),
                        background=COLORS['bg_dark'],
                        foreground=COLORS['text_dim'])

        style.configure('Shape.TRadiobutton',
                        font=('Segoe UI', 10),
                        background=COLORS['bg_dark'],
                        foreground=COLORS['text'])

        style.configure('Card.TCheckbutton',
                        font=('Segoe UI', 10),
                        background=COLORS['bg_medium'],
                        foreground=COLORS['text'])

        style.configure('Action.Horizontal.TProgressbar',
                        background=COLORS['accent'],
                        troughcolor=COLORS['bg_light'],
                        thickness=6)

    def _card(self, parent, title):
        frame = tk.Frame(parent, bg=COLORS['bg_medium'], bd=0, highlightthickness=2,
                         highlightbackground=COLORS['bg_light'])
        tk.Label(frame, text=title, font=('Segoe UI', 11, 'bold'),
                 bg=COLORS['bg_medium'], fg=COLORS['text']).pack(anchor=tk.W, padx=12, pady=(10, 6))
        return frame

    def _image_label(self, parent, text):
        label = tk.Label(parent, text=text, font=('Segoe UI', 10),
                         bg=COLORS['bg_dark'], fg=COLORS['text_dim'])
        label.pack(fill=tk.BOTH, expand=True, padx=12, pady=(0, 10))
        return label

    def _build_ui(self):
        main = ttk.Frame(self.root, style='Dark.TFrame', padding=16)
        main.pack(fill=tk.BOTH, expand=True)

        # Header
        header = ttk.Frame(main, style='Dark.TFrame')
        header.pack(fill=tk.X, pady=(0, 12))
        ttk.Label(header, text="Kernel Explorer", style='Title.TLabel').pack(side=tk.LEFT)
        ttk.Label(header, text="Load a slide, then a kernels sheet.",
                  style='Subtitle.TLabel').pack(side=tk.LEFT, padx=(20, 0), pady=(8, 0))

        # Controls row
        ctrl = ttk.Frame(main, style='Dark.TFrame')
        ctrl.pack(fill=tk.X, pady=(0, 10))

        self.load_btn = ttk.Button(ctrl, text="📁 Load Files",
                                   style='Secondary.TButton', command=self._load_files)
        self.load_btn.pack(side=tk.LEFT, padx=(0, 10))

        self.shape_buttons = []
        for idx, shape in enumerate(PRESET_SHAPES):
            btn = ttk.Radiobutton(ctrl, text=shape.label, value=idx, variable=self.shape_var,
                                  style='Shape.TRadiobutton', command=self._shape_changed)
            btn.pack(side=tk.LEFT, padx=(0, 6))
            self.shape_buttons.append(btn)

        self.split_btn = ttk.Button(ctrl, text="✂ Split kernels",
                                    style='Action.TButton', command=self._split)
        self.split_btn.pack(side=tk.LEFT, padx=(10, 10))

        self.run_btn = ttk.Button(ctrl, text="▶ Run all convolutions",
                                  style='Action.TButton', command=self._run)
        self.run_btn.pack(side=tk.LEFT, padx=(0, 10))

        self.reset_btn = ttk.Button(ctrl, text="↺ Reset",
                                    style='Secondary.TButton', command=self._reset)
        self.reset_btn.pack(side=tk.LEFT)

        self.progress = ttk.Progressbar(main, style='Action.Horizontal.TProgressbar',
                                        mode='indeterminate', length=400)
        self.progress.pack(fill=tk.X, pady=(0, 10))

        # Content: inputs | preview | log
        content = ttk.Frame(main, style='Dark.TFrame')
        content.pack(fill=tk.BOTH, expand=True)
        content.columnconfigure(0, weight=2)
        content.columnconfigure(1, weight=3)
        content.columnconfigure(2, weight=1)
        content.rowconfigure(0, weight=1)

        inputs = tk.Frame(content, bg=COLORS['bg_dark'])
        inputs.grid(row=0, column=0, sticky='nsew', padx=(0, 10))

        slide_card = self._card(inputs, "Slide")
        slide_card.pack(fill=tk.BOTH, expand=True, pady=(0, 10))
        self.slide_label = self._image_label(slide_card, "Slide not loaded.")

        sheet_card = self._card(inputs, "Kernels sheet")
        sheet_card.pack(fill=tk.BOTH, expand=True)
        self.sheet_label = self._image_label(sheet_card, "Kernels sheet not loaded.")

        preview_card = self._card(content, "Convolution preview")
        preview_card.grid(row=0, column=1, sticky='nsew', padx=(0, 10))
        self.preview_label = self._image_label(preview_card, "No convolution result yet.")

        slider_row = tk.Frame(preview_card, bg=COLORS['bg_medium'])
        slider_row.pack(fill=tk.X, padx=12, pady=(0, 10))
        self.kernel_label = tk.Label(slider_row, bg=COLORS['bg_dark'])
        self.kernel_label.pack(side=tk.LEFT, padx=(0, 10))
        self.slider = tk.Scale(slider_row, from_=0, to=0, orient=tk.HORIZONTAL,
                               variable=self.index_var, label="Kernel index",
                               command=self._slider_moved, state=tk.DISABLED,
                               bg=COLORS['bg_medium'], fg=COLORS['text'],
                               troughcolor=COLORS['bg_light'], highlightthickness=0)
        self.slider.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.score_label = tk.Label(preview_card, text="", font=('Segoe UI', 10),
                                    bg=COLORS['bg_medium'], fg=COLORS['text'])
        self.score_label.pack(anchor=tk.W, padx=12, pady=(0, 10))
        ttk.Checkbutton(preview_card, text="Stretch contrast", variable=self.stretch_var,
                        style='Card.TCheckbutton',
                        command=self._show_selected).pack(anchor=tk.W, padx=12, pady=(0, 10))

        log_frame = self._card(content, "📋 Log")
        log_frame.grid(row=0, column=2, sticky='nsew')
        self.log_text = scrolledtext.ScrolledText(
            log_frame, wrap=tk.WORD, state='disabled',
            font=('Consolas', 8), height=10, width=30,
            bg=COLORS['bg_dark'], fg=COLORS['text'],
            insertbackground=COLORS['text'],
            selectbackground=COLORS['accent'],
            bd=0, highlightthickness=0
        )
        self.log_text.pack(fill=tk.BOTH, expand=True, padx=10, pady=(0, 10))

        # Status bar
        status_frame = tk.Frame(main, bg=COLORS['bg_medium'], height=40)
        status_frame.pack(fill=tk.X, pady=(12, 0))
        status_frame.pack_propagate(False)

        self.status_label = tk.Label(status_frame, text="", font=('Segoe UI', 10),
                                     bg=COLORS['bg_medium'], fg=COLORS['text'],
                                     anchor=tk.W, padx=15)
        self.status_label.pack(fill=tk.BOTH, expand=True)

    def _log(self, msg):
        self.log_text.configure(state='normal')
        self.log_text.insert(tk.END, msg + "\n")
        self.log_text.see(tk.END)
        self.log_text.configure(state='disabled')

    def _apply(self, action, *args):
        """Run a state action; errors keep the old state and become the status."""
        try:
            self.state = action(self.state, *args)
        except ExplorerError as e:
            self.state = actions.report_error(self.state, e)
            self._log(f"❌ Error: {e}")
            self._refresh(error=True)
            return False
        self._log(self.state.status)
        self._refresh()
        return True

    def _load_files(self):
        paths = filedialog.askopenfilenames(title="Select slide, then kernels sheet",
                                            filetypes=FILETYPES)
        files = []
        for path in paths:
            try:
                with open(path, 'rb') as f:
                    files.append((os.path.basename(path), f.read()))
            except OSError as e:
                self._log(f"❌ Could not read {path}: {e}")
        if files:
            self._apply(actions.drop_files, files)

    def _shape_changed(self):
        self._apply(actions.set_shape, PRESET_SHAPES[self.shape_var.get()])

    def _split(self):
        self._apply(actions.split)

    def _run(self):
        self._set_busy(True)
        self.status_label.config(text="🔄 Running convolutions...", fg=COLORS['accent'])

        thread = threading.Thread(target=self._run_convolutions, args=(self.state,), daemon=True)
        thread.start()

    def _run_convolutions(self, state):
        old_stdout, old_stderr = sys.stdout, sys.stderr
        sys.stdout = TextRedirector(self.log_text, self.root)
        sys.stderr = TextRedirector(self.log_text, self.root)
        try:
            new_state, error = run_convolutions(state)
        finally:
            sys.stdout, sys.stderr = old_stdout, old_stderr
        if error is not None:
            self.root.after(0, lambda: self._on_run_error(error))
        else:
            self.root.after(0, lambda: self._on_run_complete(state, new_state))

    def _on_run_complete(self, started_from, new_state):
        self._set_busy(False)
        self.state = actions.finish_run(self.state, started_from, new_state)
        self._log(f"✅ {self.state.status}" if self.state is new_state else self.state.status)
        self._refresh()

    def _on_run_error(self, error):
        self._set_busy(False)
        self.state = actions.report_error(self.state, error)
        self._log(f"❌ Error: {error}")
        self._refresh(error=True)

    def _set_busy(self, busy):
        widget_state = tk.DISABLED if busy else tk.NORMAL
        for btn in (self.load_btn, self.split_btn, self.run_btn, self.reset_btn):
            btn.config(state=widget_state)
        for btn in self.shape_buttons:
            btn.config(state=widget_state)
        if busy:
            self.slider.config(state=tk.DISABLED)
            self.progress.start(10)
        else:
            self.progress.stop()
            if self.state.results:
                self.slider.config(state=tk.NORMAL)

    def _slider_moved(self, value):
        self.state = actions.select(self.state, int(float(value)))
        self._show_selected()

    def _reset(self):
        self.state = actions.reset(self.state.boundary)
        self.shape_var.set(0)
        self.log_text.configure(state='normal')
        self.log_text.delete(1.0, tk.END)
        self.log_text.configure(state='disabled')
        self._refresh()

    def _show_image(self, label, key, gray, empty_text, max_size, stretch=False):
        if gray is None:
            self.photos.pop(key, None)
            label.config(image='', text=empty_text)
            return
        self.photos[key] = to_photo(gray, max_size, stretch)
        label.config(image=self.photos[key], text='')

    def _show_selected(self):
        state = self.state
        self._show_image(self.preview_label, 'preview', state.selected_result,
                         "No convolution result yet.", PREVIEW_MAX_SIZE * 2,
                         stretch=self.stretch_var.get())

        if state.results:
            kernel = state.kernels[state.selected]
            kernel_img = Image.fromarray(kernel_to_image(kernel))
            scale = max(1, 48 // max(kernel.shape))
            kernel_img = kernel_img.resize((kernel.shape[1] * scale, kernel.shape[0] * scale),
                                           Image.Resampling.NEAREST)
            self.photos['kernel'] = ImageTk.PhotoImage(kernel_img)
            self.kernel_label.config(image=self.photos['kernel'])

            result = state.selected_result
            self.score_label.config(
                text=(f"Kernel {state.selected}: {result.shape[1]}x{result.shape[0]}, "
                      f"mean abs response {state.selected_score:.5f}"))
        else:
            self.photos.pop('kernel', None)
            self.kernel_label.config(image='')
            self.score_label.config(text=f"Kernels: {len(state.kernels)} ({state.shape.label})")

    def _refresh(self, error=False):
        state = self.state
        self.status_label.config(text=state.status,
                                 fg=COLORS['error'] if error else COLORS['text'])

        slide = state.slide.pixels if state.slide else None
        sheet = state.sheet.pixels if state.sheet else None
        self._show_image(self.slide_label, 'slide', slide, "Slide not loaded.", INPUT_THUMB_SIZE)
        self._show_image(self.sheet_label, 'sheet', sheet, "Kernels sheet not loaded.",
                         INPUT_THUMB_SIZE)

        if state.results:
            self.slider.config(state=tk.NORMAL, to=len(state.results) - 1)
        else:
            self.slider.config(to=0)
            self.slider.config(state=tk.DISABLED)
        self.index_var.set(state.selected)
        self._show_selected()


def main():
    root = tk.Tk()
    app = KernelExplorerGUI(root)
    root.mainloop()


if __name__ == "__main__":
    main()
